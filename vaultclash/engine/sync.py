# vaultclash/engine/sync.py
from __future__ import annotations

import copy
import logging
import threading
import time
import uuid
from typing import Callable, Dict, List, Optional, Set

from .errors import ChannelError
from .models import BattleState, PublishedMoveRecord
from ..content.balance import POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

RecordHandler = Callable[[PublishedMoveRecord], None]


class MoveChannel:
    """Shared store peers publish to and poll from."""

    def publish_move(self, round_id: str, record: PublishedMoveRecord) -> str:
        raise NotImplementedError

    def poll_unprocessed_moves(self, round_id: str, self_id: str) -> List[PublishedMoveRecord]:
        raise NotImplementedError

    def mark_processed(self, record_id: str, self_id: str) -> None:
        raise NotImplementedError


class InMemoryMoveChannel(MoveChannel):
    def __init__(self, clock=time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._rounds: Dict[str, List[PublishedMoveRecord]] = {}
        self._by_id: Dict[str, PublishedMoveRecord] = {}

    def publish_move(self, round_id: str, record: PublishedMoveRecord) -> str:
        stored = copy.deepcopy(record)
        stored.round_id = round_id
        stored.id = stored.id or uuid.uuid4().hex
        stored.timestamp = stored.timestamp or self._clock()
        stored.processed_by = list(stored.processed_by)
        with self._lock:
            if stored.id in self._by_id:
                raise ChannelError(f"record {stored.id} already published")
            self._rounds.setdefault(round_id, []).append(stored)
            self._by_id[stored.id] = stored
        return stored.id

    def poll_unprocessed_moves(self, round_id: str, self_id: str) -> List[PublishedMoveRecord]:
        with self._lock:
            return [
                copy.deepcopy(r) for r in self._rounds.get(round_id, [])
                if r.actor_id != self_id and self_id not in r.processed_by
            ]

    def mark_processed(self, record_id: str, self_id: str) -> None:
        with self._lock:
            record = self._by_id.get(record_id)
            if record is None:
                raise ChannelError(f"unknown record {record_id}")
            if self_id not in record.processed_by:
                record.processed_by.append(self_id)

    def get(self, record_id: str) -> Optional[PublishedMoveRecord]:
        with self._lock:
            record = self._by_id.get(record_id)
            return copy.deepcopy(record) if record else None

    def clear(self, round_id: str) -> None:
        with self._lock:
            for record in self._rounds.pop(round_id, []):
                self._by_id.pop(record.id, None)


def build_outcome_record(
    before: BattleState,
    after: BattleState,
    actor_id: str,
    round_id: Optional[str] = None,
) -> PublishedMoveRecord:
    """What ``actor_id`` just did, as peers should adopt it.

    A skipped action (no ``last_action``) still produces a record, with no
    move, so the waiting peer can advance.
    """
    action = after.last_action or {}
    target_id = action.get("target_id")
    deltas = (action.get("deltas") or {}).get(target_id) or {"shield": 0, "primary": 0}

    snapshot = {"actor": after.participants[actor_id].snapshot()}
    if target_id and target_id in after.participants and target_id != actor_id:
        snapshot["target"] = after.participants[target_id].snapshot()

    return PublishedMoveRecord(
        round_id=round_id or after.battle_id,
        actor_id=actor_id,
        kind="outcome",
        move_id=action.get("move_id"),
        move_name=action.get("move_name", ""),
        target_id=target_id,
        deltas={"shield": int(deltas.get("shield", 0)), "primary": int(deltas.get("primary", 0))},
        snapshot=snapshot,
        log_lines=list(after.log[len(before.log):]),
        stolen=int(action.get("stolen", 0) or 0),
        turn=before.turn,
    )


def build_selection_record(
    state: BattleState,
    participant_id: str,
    move_id: Optional[str],
    target_id: Optional[str],
    round_id: Optional[str] = None,
) -> PublishedMoveRecord:
    p = state.participants[participant_id]
    move = p.move(move_id)
    return PublishedMoveRecord(
        round_id=round_id or state.battle_id,
        actor_id=participant_id,
        kind="selection",
        move_id=move_id,
        move_name=move.name if move else "",
        target_id=target_id,
        turn=state.turn,
    )


class MoveFeed:
    """Hands each peer record to ``on_record`` exactly once per observer."""

    def __init__(self, channel: MoveChannel, round_id: str, self_id: str):
        self.channel = channel
        self.round_id = round_id
        self.self_id = self_id
        self._on_record: Optional[RecordHandler] = None
        self._seen: Set[str] = set()
        self.running = False

    def start(self, on_record: RecordHandler) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        self.running = False

    def _handle(self, record: PublishedMoveRecord) -> bool:
        if record.actor_id == self.self_id or self.self_id in record.processed_by:
            return False
        if not record.id or record.id in self._seen:
            return False
        self._seen.add(record.id)
        if self._on_record is not None:
            self._on_record(record)
        try:
            self.channel.mark_processed(record.id, self.self_id)
        except Exception:
            logger.debug("mark_processed failed for %s", record.id, exc_info=True)
        return True


class PollingMoveFeed(MoveFeed):
    def __init__(
        self,
        channel: MoveChannel,
        round_id: str,
        self_id: str,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        spawn: Optional[Callable] = None,
    ):
        super().__init__(channel, round_id, self_id)
        self.interval = interval
        self._sleep = sleep
        self._spawn = spawn

    def poll_once(self) -> int:
        try:
            records = self.channel.poll_unprocessed_moves(self.round_id, self.self_id)
        except Exception:
            logger.debug("Polling %s failed; retrying next interval", self.round_id, exc_info=True)
            return 0
        applied = 0
        for record in sorted(records, key=lambda r: r.timestamp):
            if self._handle(record):
                applied += 1
        return applied

    def run(self) -> None:
        while self.running:
            self.poll_once()
            self._sleep(self.interval)

    def start(self, on_record: RecordHandler) -> None:
        self._on_record = on_record
        self.running = True
        if self._spawn is not None:
            self._spawn(self.run)
        else:
            threading.Thread(target=self.run, daemon=True).start()


class PushMoveFeed(MoveFeed):
    """The transport calls ``deliver`` for each record it receives."""

    def start(self, on_record: RecordHandler) -> None:
        self._on_record = on_record
        self.running = True

    def deliver(self, record: PublishedMoveRecord) -> bool:
        if not self.running or record.round_id != self.round_id:
            return False
        return self._handle(record)
