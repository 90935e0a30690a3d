# vaultclash/engine/turn_order.py
import random
from typing import Iterable, List, Optional, Tuple

from .models import Move, TurnEntry
from ..content.balance import DEFAULTS, PRIORITY_WEIGHT, TURN_JITTER, TYPE_PRIORITIES


def move_priority(move: Optional[Move]) -> int:
    if move is None:
        return 0
    if move.priority is not None:
        return int(move.priority)
    return int(TYPE_PRIORITIES.get(move.type, 0))


def default_speed(speed: Optional[int], level: int, controller: str) -> int:
    if speed is not None:
        return int(speed)
    if controller == "cpu":
        return DEFAULTS["cpu_speed_base"] + DEFAULTS["cpu_speed_per_level"] * int(level or 1)
    return DEFAULTS["speed"]


def compute_order(
    entries: Iterable[Tuple[str, int, int]],
    r: random.Random,
    weight: int = PRIORITY_WEIGHT,
    jitter: Tuple[int, int] = TURN_JITTER,
) -> List[TurnEntry]:
    """Order ``(participant_id, speed, priority)`` entries for one round.

    The random component is drawn once per entry, in input order, so the
    result is reproducible for a seeded ``r``.
    """
    ordered: List[TurnEntry] = []
    for pid, speed, priority in entries:
        jitter_roll = r.randint(jitter[0], jitter[1])
        ordered.append(
            TurnEntry(
                participant_id=pid,
                speed=int(speed),
                priority=int(priority),
                random=jitter_roll,
                score=int(speed) + int(priority) * weight + jitter_roll,
            )
        )
    ordered.sort(key=lambda e: (-e.score, -e.random, e.participant_id))
    return ordered
