# vaultclash/engine/session.py
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Set

from .catalog import MoveCatalog
from .errors import InvalidEventError, ResourceUpdateError
from .machine import (
    ApplyRemote,
    CutsceneDone,
    Escape,
    Execute,
    OpponentTurn,
    ResolveRound,
    Select,
    reduce,
)
from .models import BattleState, Participant, PublishedMoveRecord
from .rules import clamp
from .sync import MoveChannel, MoveFeed, build_outcome_record, build_selection_record
from .turn_order import default_speed
from ..content.balance import DEFAULTS
from ..content.opponents import OPPONENTS

logger = logging.getLogger(__name__)


class ResourceStore:
    def read(self, participant_id: str) -> Optional[Dict[str, int]]:
        raise NotImplementedError

    def update_participant_resources(self, participant_id: str, deltas: Dict[str, int]) -> bool:
        raise NotImplementedError


class InMemoryResourceStore(ResourceStore):
    def __init__(self, initial: Optional[Dict[str, Dict[str, int]]] = None):
        self.resources: Dict[str, Dict[str, int]] = {k: dict(v) for k, v in (initial or {}).items()}
        self.updates: List[tuple] = []
        self._lock = threading.Lock()

    def read(self, participant_id: str) -> Optional[Dict[str, int]]:
        with self._lock:
            entry = self.resources.get(participant_id)
            return dict(entry) if entry else None

    def update_participant_resources(self, participant_id: str, deltas: Dict[str, int]) -> bool:
        with self._lock:
            entry = self.resources.setdefault(participant_id, {
                "hp": DEFAULTS["hp"], "hp_max": DEFAULTS["hp"],
                "shield": DEFAULTS["shield"], "shield_max": DEFAULTS["shield"],
            })
            entry["hp"] = clamp(entry["hp"] + int(deltas.get("primary", 0)), 0, entry["hp_max"])
            entry["shield"] = clamp(entry["shield"] + int(deltas.get("shield", 0)), 0, entry["shield_max"])
            self.updates.append((participant_id, dict(deltas)))
        return True


# ----------------------------------------------------------------------------
# setup

def make_player(
    pid: str,
    name: str,
    move_ids: Iterable[str],
    catalog: MoveCatalog,
    store: Optional[ResourceStore] = None,
    role: str = "self",
    level: int = 1,
    speed: Optional[int] = None,
    mastery: Optional[Dict[str, int]] = None,
) -> Participant:
    res = (store.read(pid) if store else None) or {}
    hp_max = int(res.get("hp_max", DEFAULTS["hp"]))
    shield_max = int(res.get("shield_max", DEFAULTS["shield"]))
    moves = []
    for move_id in move_ids:
        move = catalog.resolve(move_id, mastery=(mastery or {}).get(move_id, 1))
        if move is not None:
            moves.append(move)
    return Participant(
        id=pid,
        name=name,
        role=role,
        controller="human",
        hp=int(res.get("hp", hp_max)),
        hp_max=hp_max,
        shield=int(res.get("shield", shield_max)),
        shield_max=shield_max,
        level=level,
        speed=default_speed(speed, level, "human"),
        moves=moves,
    )


def make_cpu_opponent(opponent_id: str, catalog: MoveCatalog, pid: Optional[str] = None) -> Participant:
    data = OPPONENTS[opponent_id]
    level = int(data.get("level", DEFAULTS["level"]))
    moves = [m for m in (catalog.resolve(mid, level=level) for mid in data.get("moves", [])) if m is not None]
    return Participant(
        id=pid or opponent_id,
        name=data["name"],
        role="opponent",
        controller="cpu",
        hp=int(data.get("hp", DEFAULTS["hp"])),
        hp_max=int(data.get("hp", DEFAULTS["hp"])),
        shield=int(data.get("shield", DEFAULTS["shield"])),
        shield_max=int(data.get("shield", DEFAULTS["shield"])),
        level=level,
        speed=default_speed(data.get("speed"), level, "cpu"),
        archetype=data.get("style", "balanced"),
        moves=moves,
        instant_defeat=data.get("instant_defeat"),
    )


# ----------------------------------------------------------------------------
# orchestration

class BattleSession:
    """Runs the reducer and performs its side effects.

    After each step: persist resource deltas, publish to the move channel,
    fire callbacks. A failed resource update aborts the rest of that step.
    """

    def __init__(
        self,
        state: BattleState,
        channel: Optional[MoveChannel] = None,
        store: Optional[ResourceStore] = None,
        feed: Optional[MoveFeed] = None,
        on_battle_end: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        on_cutscene: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.state = state
        self.channel = channel
        self.store = store or InMemoryResourceStore()
        self.feed = feed
        self.on_battle_end = on_battle_end
        self.on_cutscene = on_cutscene
        self.pending: Deque[PublishedMoveRecord] = deque()
        self._received: Set[str] = set()
        self.last_error: Optional[Exception] = None
        self._lock = threading.RLock()

    @property
    def round_id(self) -> str:
        return self.state.battle_id

    # -- feed ---------------------------------------------------------------

    def start_feed(self) -> None:
        if self.feed is not None:
            self.feed.start(self.receive)

    def stop_feed(self) -> None:
        if self.feed is not None:
            self.feed.stop()

    def receive(self, record: PublishedMoveRecord) -> None:
        with self._lock:
            if self.state.is_over or (record.id and record.id in self._received):
                return
            if record.id:
                self._received.add(record.id)
            self.pending.append(record)
            self._drain_pending()
            self.pump()

    def _drain_pending(self) -> None:
        # records can arrive before the phase that accepts them
        progressed = True
        while progressed and self.pending and not self.state.is_over:
            progressed = False
            for _ in range(len(self.pending)):
                record = self.pending.popleft()
                try:
                    self.dispatch(ApplyRemote(record))
                except InvalidEventError:
                    self.pending.append(record)
                    continue
                progressed = True
                break

    # -- events -------------------------------------------------------------

    def dispatch(self, event) -> BattleState:
        with self._lock:
            before = self.state
            after = reduce(before, event)
            self.state = after
            self._settle(before, after, event)
            return after

    def select(self, move_id: Optional[str], target_id: Optional[str] = None,
               participant_id: Optional[str] = None) -> bool:
        pid = participant_id or self.state.self_id
        try:
            self.dispatch(Select(pid, move_id, target_id))
        except InvalidEventError as exc:
            logger.info("Selection ignored: %s", exc)
            return False
        return True

    def escape(self) -> bool:
        try:
            self.dispatch(Escape())
        except InvalidEventError as exc:
            logger.info("Escape ignored: %s", exc)
            return False
        return True

    def next_event(self):
        s = self.state
        if s.phase == "cutscene":
            return CutsceneDone()
        if s.phase == "opponent_turn" and not s.pvp:
            return OpponentTurn()
        if s.phase in ("selection", "execution"):
            if s.is_round_mode:
                humans = [p for p in s.live() if p.controller != "cpu"]
                if all(p.id in s.selections for p in humans):
                    return ResolveRound()
            elif s.selected_move is not None:
                return Execute()
        return None

    def step(self) -> bool:
        """Dispatch the next event that needs no further input."""
        with self._lock:
            event = self.next_event()
            if event is None:
                return False
            self.dispatch(event)
            return True

    def pump(self) -> BattleState:
        """Step until the battle waits on input, a peer, or ends."""
        with self._lock:
            while not self.state.is_over and self.last_error is None:
                if not self.step():
                    break
                self._drain_pending()
            return self.state

    # -- side effects -------------------------------------------------------

    def _settle(self, before: BattleState, after: BattleState, event) -> None:
        self.last_error = None
        if not isinstance(event, ApplyRemote) and not self._persist(before, after):
            return
        self._publish(before, after, event)

        if after.phase == "cutscene" and before.phase != "cutscene":
            logger.info("Battle %s interrupted by cutscene %s", after.battle_id, (after.interrupt or {}).get("cutscene"))
            if self.on_cutscene is not None:
                self.on_cutscene(dict(after.interrupt or {}))

        if after.is_over and not before.is_over:
            logger.info("Battle %s ended: %s %s", after.battle_id, after.result, after.rewards)
            self.stop_feed()
            if self.on_battle_end is not None:
                self.on_battle_end(after.result, dict(after.rewards))

    def _persist(self, before: BattleState, after: BattleState) -> bool:
        for pid, p in after.participants.items():
            prev = before.participants.get(pid)
            if prev is None:
                continue
            deltas = {"shield": p.shield - prev.shield, "primary": p.hp - prev.hp}
            if not deltas["shield"] and not deltas["primary"]:
                continue
            try:
                ok = self.store.update_participant_resources(pid, deltas)
            except Exception as exc:
                logger.error("Resource update for %s failed", pid, exc_info=True)
                self.last_error = ResourceUpdateError(pid, str(exc))
                return False
            if not ok:
                logger.error("Resource update for %s was rejected", pid)
                self.last_error = ResourceUpdateError(pid)
                return False
        return True

    def _publish(self, before: BattleState, after: BattleState, event) -> None:
        if self.channel is None:
            return
        if isinstance(event, Execute) and after.pvp:
            record = build_outcome_record(before, after, after.self_id, self.round_id)
            self.channel.publish_move(self.round_id, record)
        elif isinstance(event, Select) and after.is_round_mode and event.participant_id == after.self_id:
            record = build_selection_record(after, event.participant_id, event.move_id, event.target_id, self.round_id)
            self.channel.publish_move(self.round_id, record)
