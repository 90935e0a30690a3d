# vaultclash/engine/effects.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .dice import chance
from .models import ActiveEffect, EffectTemplate, Participant
from .rules import apply_damage, drain_hp, heal
from ..content.balance import CAPS

SKIP_TURN_TYPES = ("stun", "freeze")
PERIODIC_DAMAGE_TYPES = ("burn", "poison")
STACKING_TYPES = ("poison",)
# Applied to the user of the move rather than its target.
SELF_TARGETED_TYPES = ("cleanse", "reduce")

_SKIP_WORDS = {"stun": "stunned", "freeze": "frozen"}


@dataclass
class TickResult:
    skip_turn: bool = False
    deltas: Dict[str, Dict[str, int]] = field(default_factory=dict)
    stolen: int = 0
    log: List[str] = field(default_factory=list)

    def add_delta(self, pid: str, shield: int = 0, primary: int = 0) -> None:
        entry = self.deltas.setdefault(pid, {"shield": 0, "primary": 0})
        entry["shield"] += shield
        entry["primary"] += primary


def effect_name(effect_type: str) -> str:
    return effect_type.replace("_", " ").title()


def has_effect(target: Participant, effect_type: str) -> bool:
    return any(effect.type == effect_type for effect in target.effects)


def remove_effect(target: Participant, effect_type: str) -> None:
    target.effects = [effect for effect in target.effects if effect.type != effect_type]


def active_types(target: Participant) -> List[str]:
    return [effect.type for effect in target.effects]


def apply_effect(
    target: Participant,
    template: EffectTemplate,
    r: random.Random,
    success_chance: Optional[int] = None,
    source_id: Optional[str] = None,
    source_move: str = "",
) -> bool:
    """Roll the template's chance and attach it to ``target``.

    cleanse clears every active effect and is never stored; poison stacks;
    any other type replaces the existing instance of the same type.
    """
    odds = template.success_chance if success_chance is None else success_chance
    if not chance(odds, r):
        return False

    if template.type == "cleanse":
        target.effects = []
        return True

    if template.type not in STACKING_TYPES:
        remove_effect(target, template.type)
    target.effects.append(ActiveEffect.from_template(template, source_id=source_id, source_move=source_move))
    return True


def reduction_percent(owner: Participant) -> int:
    total = sum(int(effect.reduction_pct or 0) for effect in owner.effects if effect.type == "reduce")
    return max(0, min(total, CAPS["reduction_pct_max"]))


def tick_durations(owner: Participant, log: List[str]) -> None:
    """Decrement every effect and guard; drop the ones that reach 0."""
    kept: List[ActiveEffect] = []
    for effect in owner.effects:
        effect.remaining -= 1
        if effect.remaining > 0:
            kept.append(effect)
        else:
            log.append(f"{owner.name}'s {effect_name(effect.type)} wore off.")
    owner.effects = kept

    guards = []
    for guard in owner.guards:
        guard.remaining -= 1
        if guard.remaining > 0:
            guards.append(guard)
        else:
            log.append(f"{owner.name}'s {guard.source_move} fades.")
    owner.guards = guards


def tick_turn_start(
    owner: Participant,
    participants: Optional[Dict[str, Participant]] = None,
    flat_heal: int = 0,
) -> TickResult:
    """Per-turn consequences of the owner's effects, in list order.

    ``participants`` resolves the linked receiver of a drain (the participant
    that applied it). ``flat_heal`` is an arena bonus supplied by the caller.
    """
    result = TickResult()
    participants = participants or {}
    if owner.is_defeated:
        return result

    for effect in list(owner.effects):
        if effect.type in SKIP_TURN_TYPES:
            result.skip_turn = True
            result.log.append(f"{owner.name} is {_SKIP_WORDS[effect.type]} and cannot act.")
        elif effect.type in PERIODIC_DAMAGE_TYPES:
            dmg = int(effect.damage_per_turn or 0)
            if dmg > 0:
                shield_lost, hp_lost = apply_damage(owner, dmg)
                result.add_delta(owner.id, shield=-shield_lost, primary=-hp_lost)
                result.log.append(f"{owner.name} suffers {dmg} {effect.type} damage.")
        elif effect.type == "bleed":
            lost = drain_hp(owner, int(effect.loss_per_turn or 0))
            if lost > 0:
                result.add_delta(owner.id, primary=-lost)
                result.log.append(f"{owner.name} bleeds for {lost}.")
        elif effect.type == "drain":
            stolen = drain_hp(owner, int(effect.steal_per_turn or 0))
            if stolen > 0:
                result.stolen += stolen
                result.add_delta(owner.id, primary=-stolen)
                result.log.append(f"{owner.name} is drained of {stolen}.")
            receiver = participants.get(effect.source_id) if effect.source_id else None
            if receiver is not None and not receiver.is_defeated and effect.heal_per_turn:
                gained = heal(receiver, int(effect.heal_per_turn))
                if gained > 0:
                    result.add_delta(receiver.id, primary=gained)
                    result.log.append(f"{receiver.name} absorbs {gained} from the drain.")
        # reduce is read by move resolution; confuse is carried as data only

    if flat_heal and not owner.is_defeated:
        gained = heal(owner, flat_heal)
        if gained > 0:
            result.add_delta(owner.id, primary=gained)
            result.log.append(f"{owner.name} recovers {gained} from the arena.")

    tick_durations(owner, result.log)
    return result
