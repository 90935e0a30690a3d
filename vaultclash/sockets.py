# vaultclash/sockets.py
from flask import request
from flask_socketio import emit, join_room, leave_room
import time

from . import state
from .content.balance import POLL_INTERVAL_SECONDS
from .content.moves import DEFAULT_LOADOUT
from .content.opponents import OPPONENTS
from .engine.errors import ChannelError
from .engine.machine import start_battle
from .engine.models import PublishedMoveRecord
from .engine.session import BattleSession, make_cpu_opponent, make_player
from .engine.sync import PollingMoveFeed


def snapshot_for(session, viewer_id=None):
    """
    Returns a UI-friendly snapshot of the battle as seen by ``viewer_id``.
    """
    battle = session.state
    viewer_id = viewer_id or battle.self_id
    viewer_side = battle.participants[viewer_id].side

    def pack(p):
        return {
            "id": p.id,
            "name": p.name,
            "hp": p.hp, "hp_max": p.hp_max,
            "shield": p.shield, "shield_max": p.shield_max,
            "level": p.level,
            "effects": [{"type": e.type, "remaining": e.remaining} for e in p.effects],
        }

    you = battle.participants[viewer_id]
    return {
        "battle_id": battle.battle_id,
        "phase": battle.phase,
        "turn": battle.turn,
        "you": pack(you),
        "allies": [pack(p) for p in battle.participants.values() if p.side == viewer_side and p.id != viewer_id],
        "enemies": [pack(p) for p in battle.participants.values() if p.side != viewer_side],
        "moves": [{"id": m.id, "name": m.name, "type": m.type} for m in you.moves],
        "log": battle.log[-30:],
        "result": battle.result,
        "rewards": battle.rewards,
        "log_length": len(battle.log),
    }


def register_battle_socket_handlers(socketio, poll_interval=POLL_INTERVAL_SECONDS):
    @socketio.on("battle_start_cpu")
    def battle_start_cpu(payload):
        sid = request.sid
        if state.get_session(sid):
            emit("battle_system", "Already in a battle.")
            return
        if not isinstance(payload, dict):
            payload = {"opponent_id": str(payload or "").strip()}
        opponent_id = payload.get("opponent_id") or "training_dummy"
        if opponent_id not in OPPONENTS:
            emit("battle_system", f"Unknown opponent '{opponent_id}'.")
            return

        player = make_player(
            sid,
            payload.get("name") or "Challenger",
            payload.get("moves") or DEFAULT_LOADOUT,
            state.catalog,
            store=state.resources,
            level=int(payload.get("level") or 1),
        )
        opponent = make_cpu_opponent(opponent_id, state.catalog)
        seed = int(payload.get("seed") or (int(time.time() * 1000) & 0xFFFFFFFF))
        battle = start_battle(f"cpu-{sid[:5]}-{opponent_id}", [player, opponent], sid, seed)

        def on_battle_end(result, rewards):
            socketio.emit("battle_end", {"result": result, "rewards": rewards}, to=sid)

        def on_cutscene(interrupt):
            socketio.emit("battle_cutscene", interrupt, to=sid)

        session = BattleSession(
            battle,
            store=state.resources,
            on_battle_end=on_battle_end,
            on_cutscene=on_cutscene,
        )
        state.create_session(sid, session)
        emit("battle_system", f"{opponent.name} approaches.")
        emit("battle_snapshot", snapshot_for(session))

    @socketio.on("battle_action")
    def battle_action(payload):
        sid = request.sid
        session = state.get_session(sid)
        if not session:
            emit("battle_system", "Not in a battle.")
            return

        action = payload if isinstance(payload, dict) else {"move_id": str(payload).strip()}
        if not session.select(action.get("move_id"), action.get("target_id")):
            emit("battle_system", f"Cannot act during '{session.state.phase}'.")
            return
        session.pump()
        emit("battle_snapshot", snapshot_for(session))
        if session.last_error is not None:
            emit("battle_system", f"Could not save the result: {session.last_error}")
        if session.state.is_over:
            emit("battle_system", "Battle ended.")
            state.cleanup_session(sid)

    @socketio.on("battle_escape")
    def battle_escape():
        sid = request.sid
        session = state.get_session(sid)
        if not session:
            emit("battle_system", "Not in a battle.")
            return
        if not session.escape():
            emit("battle_system", "You cannot escape now.")
            return
        emit("battle_snapshot", snapshot_for(session))
        state.cleanup_session(sid)

    @socketio.on("battle_join")
    def battle_join(payload):
        sid = request.sid
        payload = payload if isinstance(payload, dict) else {"battle_id": str(payload or "").strip()}
        battle_id = payload.get("battle_id")
        if not battle_id:
            emit("battle_system", "battle_id is required.")
            return
        state.sid_to_room[sid] = battle_id
        participant_id = payload.get("participant_id") or sid

        if payload.get("transport", "poll") == "push":
            join_room(battle_id)
            emit("battle_system", f"Joined {battle_id} (push).")
            return

        def relay(record):
            socketio.emit("battle_move", record.to_dict(), to=sid)

        feed = PollingMoveFeed(
            state.channel,
            battle_id,
            participant_id,
            interval=poll_interval,
            sleep=socketio.sleep,
            spawn=socketio.start_background_task,
        )
        state.sid_feeds[sid] = feed
        feed.start(relay)
        emit("battle_system", f"Joined {battle_id} (poll).")

    @socketio.on("battle_publish")
    def battle_publish(payload):
        sid = request.sid
        battle_id = state.sid_to_room.get(sid)
        if not battle_id:
            emit("battle_system", "Join a battle before publishing.")
            return None
        if not isinstance(payload, dict) or not payload.get("actor_id"):
            emit("battle_system", "actor_id is required.")
            return None
        record = PublishedMoveRecord.from_dict(payload)
        record.processed_by = []
        try:
            record_id = state.channel.publish_move(battle_id, record)
        except ChannelError as exc:
            emit("battle_system", str(exc))
            return None
        stored = state.channel.get(record_id)
        emit("battle_move", stored.to_dict(), to=battle_id, include_self=False)
        return {"id": record_id}

    @socketio.on("disconnect")
    def battle_disconnect(reason=None):
        sid = request.sid
        room = state.sid_to_room.get(sid)
        if room:
            leave_room(room)
        state.cleanup_session(sid)
