import pytest

from vaultclash.engine.catalog import MoveCatalog, OverrideCache, build_move
from vaultclash.engine.machine import start_battle
from vaultclash.engine.models import BattleState, Participant


def make_move(move_id="strike", **fields):
    record = {"name": move_id.replace("_", " ").title(), "type": "attack"}
    record.update(fields)
    return build_move(move_id, record)


def make_participant(pid, role="self", controller="human", moves=None, **fields):
    data = dict(
        id=pid,
        name=pid.upper(),
        role=role,
        controller=controller,
        hp=100,
        hp_max=100,
        shield=0,
        shield_max=50,
        moves=list(moves or []),
    )
    data.update(fields)
    return Participant(**data)


def duel(player=None, opponent=None, seed=7, **state_fields) -> BattleState:
    player = player or make_participant("p1", moves=[make_move("strike", damage=20)])
    opponent = opponent or make_participant(
        "cpu", role="opponent", controller="cpu", moves=[make_move("jab", damage=5)], archetype="balanced"
    )
    state = start_battle("test-battle", [player, opponent], player.id, seed)
    for key, value in state_fields.items():
        setattr(state, key, value)
    return state


@pytest.fixture
def catalog():
    return MoveCatalog(cache=OverrideCache(dict))


@pytest.fixture
def battle_app(monkeypatch):
    from flask import Flask
    from flask_socketio import SocketIO

    from vaultclash import init_battle, state
    from vaultclash.engine.sync import InMemoryMoveChannel

    monkeypatch.setattr(state, "channel", InMemoryMoveChannel())
    state.override_records.clear()
    state.catalog.cache.invalidate()
    state.battle_sessions.clear()
    state.sid_to_room.clear()
    state.sid_feeds.clear()

    app = Flask(__name__)
    app.config["TESTING"] = True
    socketio = SocketIO(app)
    init_battle(app, socketio)
    yield app, socketio

    for sid in list(state.sid_feeds):
        state.cleanup_session(sid)
    state.override_records.clear()
    state.catalog.cache.invalidate()


@pytest.fixture
def client(battle_app):
    app, _ = battle_app
    return app.test_client()
