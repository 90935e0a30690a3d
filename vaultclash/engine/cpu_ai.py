# vaultclash/engine/cpu_ai.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .dice import move_range
from .models import BattleState, Move, Participant
from ..content.balance import ARCHETYPE_STYLES, CPU_WEIGHTS

BENEFICIAL_EFFECTS = ("drain", "cleanse")
HARMFUL_EFFECTS = ("burn", "poison", "stun", "bleed", "confuse", "freeze")


@dataclass
class Combatant:
    id: str
    hp: int
    hp_max: int
    shield: int
    shield_max: int
    level: int = 1
    effects: List[str] = field(default_factory=list)

    @property
    def hp_pct(self) -> float:
        return (self.hp / self.hp_max) * 100 if self.hp_max else 0.0

    @property
    def shield_pct(self) -> float:
        return (self.shield / self.shield_max) * 100 if self.shield_max else 0.0

    @classmethod
    def of(cls, p: Participant) -> "Combatant":
        return cls(
            id=p.id,
            hp=p.hp,
            hp_max=p.hp_max,
            shield=p.shield,
            shield_max=p.shield_max,
            level=p.level,
            effects=[e.type for e in p.effects],
        )


@dataclass
class Situation:
    me: Combatant
    allies: List[Combatant] = field(default_factory=list)
    enemies: List[Combatant] = field(default_factory=list)


@dataclass
class Choice:
    move: Move
    target_id: str
    reason: str
    score: float = 0.0


def situation_for(state: BattleState, cpu_id: str) -> Situation:
    me = state.participants[cpu_id]
    allies = [Combatant.of(p) for p in state.live(me.side) if p.id != cpu_id]
    enemies = [Combatant.of(p) for p in state.opponents_of(cpu_id)]
    return Situation(me=Combatant.of(me), allies=allies, enemies=enemies)


def select_target(candidates: Sequence[Combatant]) -> List[Combatant]:
    """Weakest first: low health counts double low shield."""
    def weakness(c: Combatant) -> float:
        return (100 - c.hp_pct) + (100 - c.shield_pct) * 0.5

    return sorted(candidates, key=lambda c: (-weakness(c), c.id))


def _score_self_care(me: Combatant, move: Move) -> Tuple[float, str]:
    score, reason = 0.0, ""
    heals = move.type == "heal" or bool(move.healing_range) or bool(move.healing)
    guards = move.type == "defense" or bool(move.shield_boost)
    avg_heal = move_range(move, "healing").average if heals else 0

    if me.hp_pct < CPU_WEIGHTS["critical_hp_pct"]:
        if heals:
            score += 100 + avg_heal * 2
            reason = f"Critical health - need healing ({avg_heal} HP)"
        elif guards:
            score += 80 + move.shield_boost
            reason = "Critical health - need defense"
        elif move.type == "attack":
            score -= 50
            reason = "Too low on health to attack"
    elif me.hp_pct < CPU_WEIGHTS["low_hp_pct"]:
        if heals:
            score += 60 + avg_heal * 1.5
            reason = f"Low health - healing beneficial ({avg_heal} HP)"
        elif guards:
            score += 40 + move.shield_boost * 0.5
            reason = "Low health - defense helpful"

    if guards and me.shield_pct < CPU_WEIGHTS["no_shield_pct"]:
        score += 70 + move.shield_boost * 2
        reason = reason or f"No shields - need shield boost ({move.shield_boost})"
    elif guards and me.shield_pct < CPU_WEIGHTS["low_shield_pct"]:
        score += 30 + move.shield_boost
        reason = reason or f"Low shields - shield boost helpful ({move.shield_boost})"
    return score, reason


def _score_attack(move: Move, target: Combatant) -> Tuple[float, str]:
    score, reason = 0.0, ""
    if move.type != "attack":
        return score, reason
    dmg = move_range(move, "damage")
    avg = dmg.average

    if dmg.max > 0 and dmg.max >= target.shield + target.hp:
        score += CPU_WEIGHTS["finishing_bonus"]
        reason = f"Can finish {target.id} ({dmg.max} max damage)"

    if target.hp_pct < CPU_WEIGHTS["target_low_hp_pct"]:
        score += 90 + avg * 1.5
        reason = reason or f"Target low health - finish them ({avg} damage)"
    elif target.shield_pct < CPU_WEIGHTS["no_shield_pct"]:
        score += 50 + avg * 1.2
        reason = reason or f"Target no shields - high damage attack ({avg} damage)"
    elif target.shield_pct > CPU_WEIGHTS["low_shield_pct"]:
        if avg > target.shield:
            score += 40 + avg * 0.8
            reason = reason or f"Target has shields - high damage to break ({avg} damage)"
        else:
            score += 20 + avg * 0.5
            reason = reason or f"Target has shields - moderate damage ({avg} damage)"

    score += 10 + avg * 0.3
    reason = reason or f"Standard attack ({avg} damage)"

    if target.hp_pct > CPU_WEIGHTS["target_healthy_pct"] and avg < CPU_WEIGHTS["weak_attack_damage"]:
        score -= 20
        reason = reason or "Weak attack against healthy target"
    return score, reason


def score_pair(situation: Situation, move: Move, target: Combatant) -> Tuple[float, str]:
    score, reason = _score_self_care(situation.me, move)

    attack_score, attack_reason = _score_attack(move, target)
    score += attack_score
    reason = reason or attack_reason

    types = [e.type for e in move.effects]
    helpful = [t for t in types if t in BENEFICIAL_EFFECTS]
    harmful = [t for t in types if t in HARMFUL_EFFECTS and t not in target.effects]
    if helpful:
        score += 30
        reason = reason or f"Applies beneficial effects: {', '.join(helpful)}"
    if harmful:
        score += 25
        reason = reason or f"Applies negative effects: {', '.join(harmful)}"

    if move.steal > 0:
        score += 20 + move.steal * 0.5
        reason = reason or f"Steals ({move.steal})"

    if move.priority and move.priority > 0:
        score += move.priority * 15
        reason = reason or f"High priority move (+{move.priority})"
    elif move.priority and move.priority < 0:
        score -= abs(move.priority) * 5
        reason = reason or f"Low priority move ({move.priority})"

    return score, reason or "No particular advantage"


def _style_weight(move: Move, archetype: Optional[str]) -> float:
    style = ARCHETYPE_STYLES.get(archetype or "balanced", ARCHETYPE_STYLES["balanced"])
    if move.is_offensive:
        return style["attack"]
    if move.type == "defense":
        return style["defense"]
    return style["heal"]


def select(
    situation: Situation,
    candidate_targets: Sequence[Combatant],
    available_moves: Sequence[Move],
    archetype: Optional[str] = None,
) -> Optional[Choice]:
    """Best (move, target) pair for a CPU participant.

    Offensive moves are scored against every candidate target; heal, defense
    and support moves against the CPU itself and its allies. None only when
    there is nothing to act on.
    """
    moves = list(available_moves)
    if archetype == "passive":
        # with nothing else to use, a passive CPU still attacks
        moves = [m for m in moves if not m.is_offensive] or moves
    if not moves:
        return None

    targets = select_target([c for c in candidate_targets if c.id != situation.me.id])
    friends = [situation.me] + list(situation.allies)

    pairs: List[Choice] = []
    for move in moves:
        for target in (targets if move.is_offensive else friends):
            score, reason = score_pair(situation, move, target)
            if score > 0:
                score *= _style_weight(move, archetype)
            pairs.append(Choice(move=move, target_id=target.id, reason=reason, score=score))

    if not pairs:
        return None

    best = max(pairs, key=lambda c: c.score)
    if best.score >= 0:
        return best

    fallback = moves[0]
    pool = targets if fallback.is_offensive else friends
    if not pool:
        return None
    return Choice(move=fallback, target_id=pool[0].id, reason="Fallback: first available move", score=best.score)
