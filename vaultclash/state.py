# vaultclash/state.py
from typing import Any, Dict, Optional

from .content.moves import MOVES
from .engine.catalog import MoveCatalog, OverrideCache
from .engine.session import BattleSession, InMemoryResourceStore
from .engine.sync import InMemoryMoveChannel, MoveFeed

battle_sessions: Dict[str, BattleSession] = {}
sid_to_room: Dict[str, str] = {}
sid_feeds: Dict[str, MoveFeed] = {}

# admin-edited override records, keyed by move id
override_records: Dict[str, Dict[str, Any]] = {}


def load_overrides() -> Dict[str, Dict[str, Any]]:
    return {name: dict(record) for name, record in override_records.items()}


channel = InMemoryMoveChannel()
resources = InMemoryResourceStore()
catalog = MoveCatalog(MOVES, OverrideCache(load_overrides))


def create_session(sid: str, session: BattleSession) -> BattleSession:
    battle_sessions[sid] = session
    return session


def get_session(sid: str) -> Optional[BattleSession]:
    return battle_sessions.get(sid)


def cleanup_session(sid: str) -> None:
    session = battle_sessions.pop(sid, None)
    if session is not None:
        session.stop_feed()
    feed = sid_feeds.pop(sid, None)
    if feed is not None:
        feed.stop()
    sid_to_room.pop(sid, None)
