# vaultclash/engine/rules.py
from typing import Iterable, Tuple

from .models import Participant, Guard


def clamp(x: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, x))


def mitigate(raw: int, guards: Iterable[Guard], reduce_pct: int) -> int:
    # flat guard amounts, then guard percentages, then the reduce status
    dmg = max(0, int(raw))
    guards = list(guards)
    for guard in guards:
        dmg = max(0, dmg - int(guard.amount or 0))
    for guard in guards:
        if guard.percentage:
            dmg = int(dmg * (100 - clamp(int(guard.percentage), 0, 100)) / 100)
    if reduce_pct:
        dmg = int(dmg * (100 - clamp(int(reduce_pct), 0, 100)) / 100)
    return dmg


def apply_damage(target: Participant, amount: int) -> Tuple[int, int]:
    """Shield absorbs first. Returns (shield_lost, hp_lost)."""
    amount = max(0, int(amount))
    shield_lost = min(amount, target.shield)
    target.shield -= shield_lost
    hp_lost = min(amount - shield_lost, target.hp)
    target.hp -= hp_lost
    return shield_lost, hp_lost


def drain_hp(target: Participant, amount: int) -> int:
    """Direct primary loss that bypasses the shield; bounded by current hp."""
    lost = clamp(int(amount), 0, max(0, target.hp))
    target.hp -= lost
    return lost


def heal(target: Participant, amount: int) -> int:
    before = target.hp
    target.hp = clamp(target.hp + max(0, int(amount)), 0, target.hp_max)
    return target.hp - before


def boost_shield(target: Participant, amount: int) -> int:
    before = target.shield
    target.shield = clamp(target.shield + max(0, int(amount)), 0, target.shield_max)
    return target.shield - before


def hp_pct(p: Participant) -> float:
    return (p.hp / p.hp_max) * 100 if p.hp_max else 0.0


def shield_pct(p: Participant) -> float:
    return (p.shield / p.shield_max) * 100 if p.shield_max else 0.0
