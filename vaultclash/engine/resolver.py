# vaultclash/engine/resolver.py
import random
from typing import Any, Dict, List, Optional

from .dice import move_range, roll
from .effects import SELF_TARGETED_TYPES, apply_effect, effect_name, reduction_percent
from .models import BattleState, Guard, Move, Participant
from .rules import apply_damage, boost_shield, heal, hp_pct, mitigate


def snapshot_resources(state: BattleState) -> Dict[str, Dict[str, int]]:
    return {pid: {"shield": p.shield, "primary": p.hp} for pid, p in state.participants.items()}


def diff_resources(before: Dict[str, Dict[str, int]], state: BattleState) -> Dict[str, Dict[str, int]]:
    """Per-participant {shield, primary} deltas; unchanged participants are omitted."""
    deltas: Dict[str, Dict[str, int]] = {}
    for pid, p in state.participants.items():
        prev = before.get(pid)
        if prev is None:
            continue
        shield = p.shield - prev["shield"]
        primary = p.hp - prev["primary"]
        if shield or primary:
            deltas[pid] = {"shield": shield, "primary": primary}
    return deltas


def default_target(state: BattleState, actor: Participant, move: Optional[Move]) -> Optional[str]:
    if move is not None and not move.is_offensive:
        return actor.id
    enemies = state.opponents_of(actor.id)
    return enemies[0].id if enemies else None


def _valid_target(state: BattleState, actor: Participant, move: Move, target: Optional[Participant]) -> bool:
    if target is None or target.is_defeated:
        return False
    if move.is_offensive:
        return target.side != actor.side
    return target.side == actor.side


def _apply_effects(actor: Participant, target: Participant, move: Move, r: random.Random, log: List[str]) -> None:
    for template in move.effects:
        receiver = actor if (template.type in SELF_TARGETED_TYPES and move.is_offensive) else target
        if receiver.is_defeated:
            continue
        name = effect_name(template.type)
        if apply_effect(receiver, template, r, source_id=actor.id, source_move=move.name):
            if template.type == "cleanse":
                log.append(f"{receiver.name} is cleansed of all effects.")
            else:
                log.append(f"{receiver.name} is affected by {name} ({template.duration} turns).")
        else:
            log.append(f"{receiver.name} resisted {name}.")


def _counter_damage(guard: Guard, r: random.Random) -> int:
    counter = guard.counter
    if counter.damage_range:
        lo, hi = sorted(int(v) for v in counter.damage_range)
        return r.randint(max(0, lo), max(0, hi))
    return max(0, int(counter.damage or 0))


def _trigger_counters(attacker: Participant, defender: Participant, r: random.Random, log: List[str]) -> None:
    for guard in list(defender.guards):
        counter = guard.counter
        if counter is None or defender.is_defeated or attacker.is_defeated:
            continue
        if counter.condition == "on_low_health" and hp_pct(defender) >= counter.threshold:
            continue
        if counter.condition not in ("always", "if_attacked", "on_low_health"):
            continue
        dmg = _counter_damage(guard, r)
        if dmg <= 0:
            continue
        shield_lost, hp_lost = apply_damage(attacker, dmg)
        line = f"{defender.name}'s {guard.source_move} strikes back at {attacker.name} for {dmg} damage."
        if shield_lost:
            line += f" (Shield absorbed {shield_lost})"
        log.append(line)


def _resolve_attack(state: BattleState, actor: Participant, target: Participant, move: Move, r: random.Random,
                    log: List[str]) -> int:
    rolled = roll(move_range(move, "damage"), actor.level, move.level, move.mastery, r)
    dmg = mitigate(rolled.value, target.guards, reduction_percent(target))
    shield_lost, hp_lost = apply_damage(target, dmg)

    line = f"{actor.name} uses {move.name} on {target.name} for {dmg} damage."
    if rolled.is_max_roll and dmg > 0:
        line += " Maximum roll!"
    if dmg < rolled.value:
        line += f" ({rolled.value - dmg} blocked)"
    if shield_lost:
        line += f" Shield absorbed {shield_lost}."
    log.append(line)

    stolen = 0
    if move.steal > 0 and dmg > 0:
        stolen = int(move.steal)
        state.steal_pool[actor.side] = state.steal_pool.get(actor.side, 0) + stolen
        log.append(f"{actor.name} steals {stolen}.")

    if target.is_defeated:
        log.append(f"{target.name} is defeated!")
    else:
        _apply_effects(actor, target, move, r, log)
    _trigger_counters(actor, target, r, log)
    return stolen


def _raise_guard(actor: Participant, move: Move) -> Optional[Guard]:
    if move.reduction is None and move.counter is None:
        return None
    reduction = move.reduction
    guard = Guard(
        source_move=move.name,
        amount=reduction.amount if reduction else 0,
        percentage=reduction.percentage if reduction else 0,
        remaining=max(1, reduction.duration if reduction else 1),
        counter=move.counter,
    )
    actor.guards = [g for g in actor.guards if g.source_move != move.name] + [guard]
    return guard


def resolve_move(
    state: BattleState,
    actor_id: str,
    move_id: Optional[str],
    target_id: Optional[str],
    r: random.Random,
) -> Dict[str, Any]:
    """Apply one move in place on ``state`` and report what happened.

    Unknown moves and invalid targets resolve to a logged no-op.
    """
    actor = state.participants.get(actor_id)
    log: List[str] = []
    result: Dict[str, Any] = {
        "actor_id": actor_id,
        "target_id": target_id,
        "move_id": move_id,
        "move_name": "",
        "deltas": {},
        "stolen": 0,
        "fumbled": False,
        "log": log,
    }
    if actor is None or actor.is_defeated:
        return result

    move = actor.move(move_id)
    if move is None:
        log.append(f"{actor.name} fumbles (unknown move '{move_id}').")
        result["fumbled"] = True
        state.log.extend(log)
        return result

    result["move_name"] = move.name
    if target_id is None:
        target_id = default_target(state, actor, move)
        result["target_id"] = target_id
    target = state.participants.get(target_id) if target_id else None
    if not _valid_target(state, actor, move, target):
        log.append(f"{actor.name} fumbles {move.name} (no valid target).")
        result["fumbled"] = True
        state.log.extend(log)
        return result

    before = snapshot_resources(state)

    if move.type == "attack" or (move.type == "utility" and move.is_offensive):
        if move.type == "attack":
            result["stolen"] = _resolve_attack(state, actor, target, move, r, log)
        else:
            log.append(f"{actor.name} uses {move.name} on {target.name}.")
            _apply_effects(actor, target, move, r, log)

    elif move.type == "defense":
        gained = boost_shield(target, roll(move_range(move, "shield"), actor.level, move.level, move.mastery, r,
                                           kind="shield").value) if move.shield_boost else 0
        log.append(f"{actor.name} uses {move.name}. Shield +{gained}.")
        guard = _raise_guard(target, move)
        if guard is not None and (guard.amount or guard.percentage):
            log.append(f"{target.name} braces behind {move.name} for {guard.remaining} turns.")
        _apply_effects(actor, target, move, r, log)

    elif move.type == "heal":
        healed = heal(target, roll(move_range(move, "healing"), actor.level, move.level, move.mastery, r,
                                   kind="healing").value)
        who = "" if target is actor else f" on {target.name}"
        log.append(f"{actor.name} uses {move.name}{who} and restores {healed}.")
        _apply_effects(actor, target, move, r, log)

    else:
        # support, or utility without effects
        parts = []
        if move.healing or move.healing_range:
            healed = heal(target, roll(move_range(move, "healing"), actor.level, move.level, move.mastery, r,
                                       kind="healing").value)
            parts.append(f"restores {healed}")
        if move.shield_boost:
            gained = boost_shield(target, roll(move_range(move, "shield"), actor.level, move.level, move.mastery, r,
                                               kind="shield").value)
            parts.append(f"Shield +{gained}")
        who = "" if target is actor else f" on {target.name}"
        tail = f": {', '.join(parts)}." if parts else "."
        log.append(f"{actor.name} uses {move.name}{who}{tail}")
        _apply_effects(actor, target, move, r, log)

    result["deltas"] = diff_resources(before, state)
    state.log.extend(log)
    return result
