# vaultclash/engine/dice.py
import math
import random
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..content.balance import (
    RANGE_SHAPES,
    MASTERY_BOOSTS,
    ASCENDED_BOOSTS,
    SHIELD_MASTERY_BOOSTS,
    MAX_CHANCE,
    CAPS,
)

BoostTable = Dict[int, Tuple[float, float]]


@dataclass(frozen=True)
class RollRange:
    min: int
    max: int

    @property
    def average(self) -> int:
        return (self.min + self.max) // 2

    def __str__(self) -> str:
        return f"{self.min}-{self.max}"


@dataclass(frozen=True)
class RollResult:
    value: int
    is_max_roll: bool
    max_chance: int = 0


def rng_for(seed: int, *salt) -> random.Random:
    # deterministic per battle seed + turn (+ actor)
    key = ":".join(str(part) for part in (seed,) + salt)
    return random.Random(key)


def clamp_tier(mastery: int) -> int:
    return max(CAPS["mastery_min"], min(CAPS["mastery_max"], int(mastery or 1)))


def boost_for(tier: int, table: Optional[BoostTable] = None) -> Tuple[float, float]:
    """(min_mult, max_mult) for the step into ``tier``.

    Tiers below the ascended threshold read MASTERY_BOOSTS, the rest read
    ASCENDED_BOOSTS, unless a call site passes its own table.
    """
    if table is None:
        table = ASCENDED_BOOSTS if tier >= CAPS["ascended_from"] else MASTERY_BOOSTS
    return table.get(tier, (1.0, 1.0))


def scaled_range(
    base: int,
    move_level: int,
    mastery: int,
    shape: Dict[str, float],
    table: Optional[BoostTable] = None,
) -> RollRange:
    base = int(base or 0)
    if base <= 0:
        return RollRange(0, 0)
    level_bonus = math.floor(base * shape["level_step"] * (max(1, int(move_level or 1)) - 1))
    lo = float(math.floor(base * shape["floor"]) + level_bonus)
    hi = float(base + level_bonus)
    for tier in range(2, clamp_tier(mastery) + 1):
        min_mult, max_mult = boost_for(tier, table)
        lo *= min_mult
        hi *= max_mult
    lo_i, hi_i = math.floor(lo), math.floor(hi)
    return RollRange(min(lo_i, hi_i), hi_i)


def damage_range(base: int, move_level: int = 1, mastery: int = 1) -> RollRange:
    return scaled_range(base, move_level, mastery, RANGE_SHAPES["damage"])


def healing_range(base: int, move_level: int = 1, mastery: int = 1) -> RollRange:
    return scaled_range(base, move_level, mastery, RANGE_SHAPES["healing"])


def shield_range(base: int, move_level: int = 1, mastery: int = 1) -> RollRange:
    return scaled_range(base, move_level, mastery, RANGE_SHAPES["shield"], SHIELD_MASTERY_BOOSTS)


def fixed_range(bounds: Tuple[int, int]) -> RollRange:
    lo, hi = int(bounds[0]), int(bounds[1])
    if lo > hi:
        lo, hi = hi, lo
    return RollRange(max(0, lo), max(0, hi))


def move_range(move, kind: str = "damage") -> RollRange:
    """Range for one of a move's magnitudes; explicit ranges bypass scaling."""
    if kind == "damage":
        if move.damage_range:
            return fixed_range(move.damage_range)
        return damage_range(move.damage, move.level, move.mastery)
    if kind == "healing":
        if move.healing_range:
            return fixed_range(move.healing_range)
        return healing_range(move.healing, move.level, move.mastery)
    return shield_range(move.shield_boost, move.level, move.mastery)


def max_chance(kind: str, actor_level: int, move_level: int, mastery: int) -> int:
    weights = MAX_CHANCE.get(kind, MAX_CHANCE["damage"])
    chance = weights["base"]
    chance += min(int(actor_level or 0) * 2, 50)
    chance += (max(1, int(move_level or 1)) - 1) * weights["move_level"]
    chance += (clamp_tier(mastery) - 1) * weights["mastery"]
    return min(chance, CAPS["max_chance"])


def roll(
    rng_range: RollRange,
    actor_level: int,
    move_level: int,
    mastery: int,
    r: random.Random,
    kind: str = "damage",
) -> RollResult:
    if rng_range.max <= 0:
        return RollResult(0, False, 0)
    value = r.randint(rng_range.min, rng_range.max)
    return RollResult(
        value=value,
        is_max_roll=value == rng_range.max,
        max_chance=max_chance(kind, actor_level, move_level, mastery),
    )


def chance(percent: int, r: random.Random) -> bool:
    """True with probability ``percent``/100; 100 always, 0 never."""
    return r.randint(1, 100) <= int(percent)
