# vaultclash/engine/machine.py
"""Battle state machine.

``reduce(state, event)`` never mutates its input: every event works on a deep
copy, and all randomness comes from ``rng_for(state.seed, state.turn, actor)``
so two clients holding the same state and seed resolve identical rounds.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from . import cpu_ai
from .dice import rng_for
from .effects import tick_turn_start
from .errors import InvalidEventError
from .models import BattleState, MoveSelection, Participant, PublishedMoveRecord
from .resolver import resolve_move
from .turn_order import compute_order, move_priority


@dataclass(frozen=True)
class Select:
    participant_id: str
    move_id: Optional[str]
    target_id: Optional[str] = None


@dataclass(frozen=True)
class Execute:
    pass


@dataclass(frozen=True)
class OpponentTurn:
    move_id: Optional[str] = None
    target_id: Optional[str] = None


@dataclass(frozen=True)
class ApplyRemote:
    record: PublishedMoveRecord


@dataclass(frozen=True)
class ResolveRound:
    pass


@dataclass(frozen=True)
class CutsceneDone:
    pass


@dataclass(frozen=True)
class Escape:
    pass


def start_battle(
    battle_id: str,
    participants: List[Participant],
    self_id: str,
    seed: int,
    pvp: bool = False,
    first_id: Optional[str] = None,
) -> BattleState:
    """New battle in ``selection``.

    PvP turns alternate: ``first_id`` (default: the lowest human id, so both
    clients agree) acts first and the other client starts in
    ``opponent_turn`` waiting on that move.
    """
    state = BattleState(
        battle_id=battle_id,
        self_id=self_id,
        participants={p.id: p for p in participants},
        seed=seed,
        pvp=pvp,
    )
    names = " vs ".join(
        ", ".join(p.name for p in participants if p.side == side) for side in ("player", "enemy")
    )
    state.log.append(f"Battle begins: {names}.")
    if pvp:
        state.first_id = first_id or min(p.id for p in participants if p.controller != "cpu")
        if _moves_second(state):
            state.phase = "opponent_turn"
    return state


# ----------------------------------------------------------------------------
# helpers

def _opponent(state: BattleState) -> Optional[Participant]:
    enemies = state.opponents_of(state.self_id)
    return enemies[0] if enemies else None


def _finish(state: BattleState, winner: str) -> None:
    loser = "enemy" if winner == "player" else "player"
    remaining = sum(p.hp for p in state.participants.values() if p.side == loser and p.hp > 0)
    stolen = state.steal_pool.get(winner, 0)
    state.rewards = {
        "winner": winner,
        "credited": stolen + remaining,
        "stolen": stolen,
        "turns": state.turn,
    }
    state.phase = "victory" if winner == state.me.side else "defeat"
    state.result = state.phase
    state.selected_move = None
    state.selected_target = None
    state.selections = {}
    state.log.append("Victory!" if state.phase == "victory" else "Defeat...")


def _moves_second(state: BattleState) -> bool:
    return state.pvp and state.first_id is not None and state.first_id != state.self_id


def _check_end(state: BattleState) -> bool:
    if not state.live("enemy"):
        _finish(state, "player")
        return True
    if state.me.is_defeated:
        # the controlling player going down ends the battle even with allies standing
        _finish(state, "enemy" if state.me.side == "player" else "player")
        return True
    if not state.live("player"):
        _finish(state, "enemy")
        return True
    return False


def _check_instant_defeat(state: BattleState, actor: Participant, target_id: Optional[str]) -> bool:
    rule = actor.instant_defeat
    if not rule or not target_id:
        return False
    target = state.participants.get(target_id)
    if target is None or target.role not in rule.get("target_roles", []):
        return False
    if target.hp >= int(rule.get("hp_below", 0)):
        return False
    state.phase = "cutscene"
    state.interrupt = {
        "cutscene": rule.get("cutscene"),
        "source_id": actor.id,
        "target_id": target.id,
        "winner": actor.side,
    }
    state.log.append(f"{actor.name} overwhelms {target.name}!")
    return True


def _tick(state: BattleState, actor: Participant) -> bool:
    """Start-of-action tick for ``actor``. True when the actor loses the action."""
    tick = tick_turn_start(actor, state.participants)
    state.log.extend(tick.log)
    return tick.skip_turn or actor.is_defeated


def _cpu_choice(state: BattleState, cpu: Participant) -> Tuple[Optional[str], Optional[str]]:
    situation = cpu_ai.situation_for(state, cpu.id)
    choice = cpu_ai.select(situation, situation.enemies, cpu.moves, cpu.archetype)
    if choice is None and state.self_id in state.participants and not state.me.is_defeated:
        choice = cpu_ai.select(situation, [cpu_ai.Combatant.of(state.me)], cpu.moves, cpu.archetype)
    if choice is None:
        return None, None
    return choice.move.id, choice.target_id


def _act(state: BattleState, actor: Participant, move_id: Optional[str], target_id: Optional[str]) -> None:
    if not actor.moves:
        state.log.append(f"{actor.name} cannot act.")
        state.last_action = {"actor_id": actor.id, "move_id": None, "move_name": "", "target_id": None,
                             "stolen": 0, "deltas": {}}
        return
    r = rng_for(state.seed, state.turn, actor.id)
    result = resolve_move(state, actor.id, move_id, target_id, r)
    state.last_action = {k: result[k] for k in ("actor_id", "move_id", "move_name", "target_id", "stolen", "deltas")}


def _next_turn(state: BattleState) -> None:
    state.turn += 1
    state.phase = "selection"
    state.selected_move = None
    state.selected_target = None
    state.selections = {}
    state.turn_order = []
    state.cursor = 0


def _hand_over(state: BattleState) -> None:
    """After the local move: wait on the opponent, or close the turn when moving second."""
    if _moves_second(state):
        _next_turn(state)
    state.phase = "opponent_turn"


# ----------------------------------------------------------------------------
# handlers

def _on_select(state: BattleState, event: Select) -> None:
    p = state.participants.get(event.participant_id)
    if p is None or p.is_defeated:
        state.log.append(f"{event.participant_id} cannot select a move.")
        return
    if not state.is_round_mode:
        if p.id != state.self_id:
            raise InvalidEventError(event, state.phase)
        state.selected_move = event.move_id
        state.selected_target = event.target_id
        return
    if _selections_complete(state):
        raise InvalidEventError(event, state.phase)
    state.selections[p.id] = MoveSelection(p.id, event.move_id, event.target_id)


def _on_execute(state: BattleState, event: Execute) -> None:
    if state.is_round_mode or state.selected_move is None:
        raise InvalidEventError(event, state.phase)
    me = state.me
    state.phase = "execution"
    state.last_action = None

    if _tick(state, me):
        if not _check_end(state):
            _hand_over(state)
        return

    _act(state, me, state.selected_move, state.selected_target)
    state.selected_move = None
    state.selected_target = None
    if not _check_end(state):
        _hand_over(state)


def _on_opponent_turn(state: BattleState, event: OpponentTurn) -> None:
    opp = _opponent(state)
    if state.pvp or opp is None:
        raise InvalidEventError(event, state.phase)
    state.last_action = None

    if _tick(state, opp):
        if not _check_end(state):
            _next_turn(state)
        return

    move_id, target_id = event.move_id, event.target_id
    if move_id is None and opp.controller == "cpu":
        move_id, target_id = _cpu_choice(state, opp)
    if target_id is None:
        target_id = state.self_id
    _act(state, opp, move_id, target_id)

    if _check_instant_defeat(state, opp, target_id):
        return
    if not _check_end(state):
        _next_turn(state)


def _on_apply_remote(state: BattleState, event: ApplyRemote) -> None:
    record = event.record
    if record.kind == "selection":
        if state.phase != "selection" or not state.is_round_mode:
            raise InvalidEventError(event, state.phase)
        actor = state.participants.get(record.actor_id)
        if actor is None or actor.is_defeated or _selections_complete(state):
            return
        state.selections[actor.id] = MoveSelection(actor.id, record.move_id, record.target_id)
        return

    if state.phase != "opponent_turn" or not state.pvp:
        raise InvalidEventError(event, state.phase)
    opp = _opponent(state)
    if opp is None or record.actor_id != opp.id:
        return
    if record.turn and record.turn < state.turn:
        state.log.append(f"Ignored a stale move from {opp.name}.")
        return

    for snap in (record.snapshot or {}).values():
        p = state.participants.get((snap or {}).get("id"))
        if p is not None:
            p.adopt(snap)
    state.log.extend(record.log_lines)
    if record.stolen:
        state.steal_pool[opp.side] = state.steal_pool.get(opp.side, 0) + int(record.stolen)
    state.last_action = {
        "actor_id": record.actor_id,
        "move_id": record.move_id,
        "move_name": record.move_name,
        "target_id": record.target_id,
        "stolen": record.stolen,
        "deltas": {record.target_id: dict(record.deltas)} if record.target_id else {},
    }
    if not _check_end(state):
        if _moves_second(state):
            state.phase = "selection"
        else:
            _next_turn(state)


def _selections_complete(state: BattleState) -> bool:
    return all(p.id in state.selections for p in state.live())


def _humans_ready(state: BattleState) -> bool:
    return all(p.id in state.selections for p in state.live() if p.controller != "cpu")


def _on_resolve_round(state: BattleState, event: ResolveRound) -> None:
    if not state.is_round_mode or not _humans_ready(state):
        raise InvalidEventError(event, state.phase)

    for p in state.live():
        if p.controller == "cpu" and p.id not in state.selections:
            move_id, target_id = _cpu_choice(state, p)
            state.selections[p.id] = MoveSelection(p.id, move_id, target_id)

    entries = []
    for pid, sel in state.selections.items():
        p = state.participants[pid]
        entries.append((pid, p.speed, move_priority(p.move(sel.move_id))))
    state.turn_order = compute_order(entries, rng_for(state.seed, state.turn, "order"))
    state.phase = "execution"
    state.last_action = None

    for index, entry in enumerate(state.turn_order):
        state.cursor = index
        actor = state.participants[entry.participant_id]
        if actor.is_defeated:
            continue
        if _tick(state, actor):
            if _check_end(state):
                return
            continue
        sel = state.selections[actor.id]
        target = state.participants.get(sel.target_id) if sel.target_id else None
        if target is not None and target.is_defeated:
            state.log.append(f"{actor.name}'s target {target.name} is already down.")
            continue
        _act(state, actor, sel.move_id, sel.target_id)
        if _check_instant_defeat(state, actor, (state.last_action or {}).get("target_id")):
            return
        if _check_end(state):
            return

    _next_turn(state)


def _on_cutscene_done(state: BattleState, event: CutsceneDone) -> None:
    interrupt = state.interrupt or {}
    winner = interrupt.get("winner", "enemy")
    state.interrupt = None
    _finish(state, winner)


def _on_escape(state: BattleState, event: Escape) -> None:
    state.phase = "escape"
    state.result = "escape"
    state.rewards = {}
    state.selected_move = None
    state.selected_target = None
    state.selections = {}
    state.log.append(f"{state.me.name} escaped from the battle.")


_HANDLERS: Dict[type, Tuple[Tuple[str, ...], Callable]] = {
    Select: (("selection",), _on_select),
    Execute: (("selection", "execution"), _on_execute),
    OpponentTurn: (("opponent_turn",), _on_opponent_turn),
    ApplyRemote: (("selection", "opponent_turn"), _on_apply_remote),
    ResolveRound: (("selection",), _on_resolve_round),
    CutsceneDone: (("cutscene",), _on_cutscene_done),
    Escape: (("selection", "execution", "opponent_turn"), _on_escape),
}


def reduce(state: BattleState, event) -> BattleState:
    entry = _HANDLERS.get(type(event))
    if entry is None or state.phase not in entry[0]:
        raise InvalidEventError(event, state.phase)
    new_state = copy.deepcopy(state)
    entry[1](new_state, event)
    return new_state
