"""Automated regression suite for Vault Clash battle sessions.

Drives whole battles through BattleSession (reducer + side effects) and
checks state invariants after every dispatched event.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from vaultclash.engine.catalog import MoveCatalog, OverrideCache
from vaultclash.engine.machine import start_battle
from vaultclash.engine.models import BattleState, Participant
from vaultclash.engine.session import (
    BattleSession,
    InMemoryResourceStore,
    make_cpu_opponent,
    make_player,
)
from vaultclash.engine.sync import InMemoryMoveChannel, PollingMoveFeed


_MAX_TURNS = 40


def _catalog() -> MoveCatalog:
    return MoveCatalog(cache=OverrideCache(dict))


def state_extract(battle: BattleState) -> Dict[str, Any]:
    state: Dict[str, Any] = {"turn": battle.turn, "phase": battle.phase, "participants": {}}
    for pid in sorted(battle.participants):
        p = battle.participants[pid]
        state["participants"][pid] = {
            "hp": p.hp,
            "hp_max": p.hp_max,
            "shield": p.shield,
            "shield_max": p.shield_max,
            "effects": [(fx.type, fx.remaining) for fx in p.effects],
            "guards": [(g.source_move, g.remaining) for g in p.guards],
        }
    return state


def _assert_invariants(before: BattleState, after: BattleState) -> None:
    assert after.turn >= before.turn, "turn counter went backwards"
    assert after.log[: len(before.log)] == before.log, "battle log was rewritten"

    for pid, p in after.participants.items():
        assert 0 <= p.hp <= p.hp_max, f"hp out of range for {pid}: {p.hp}/{p.hp_max}"
        assert 0 <= p.shield <= p.shield_max, f"shield out of range for {pid}: {p.shield}/{p.shield_max}"
        for fx in p.effects:
            assert fx.remaining > 0, f"expired {fx.type} still attached to {pid}"
        for guard in p.guards:
            assert guard.remaining > 0, f"expired guard {guard.source_move} still attached to {pid}"

    if after.is_over:
        assert after.result == after.phase, "result should mirror the terminal phase"


class CheckedSession(BattleSession):
    """BattleSession that verifies invariants on every dispatched event."""

    def dispatch(self, event):
        before = self.state
        after = super().dispatch(event)
        _assert_invariants(before, after)
        return after


def play_turn(session: BattleSession, move_id: str, target_id=None) -> BattleState:
    prior_turn = session.state.turn
    assert session.select(move_id, target_id), f"selection rejected in phase {session.state.phase}"
    state = session.pump()
    if not state.is_over and state.phase != "cutscene":
        assert state.turn == prior_turn + 1, "a full turn should advance the counter exactly once"
    return state


def play_until_over(session: BattleSession, move_id: str, target_id=None) -> BattleState:
    for _ in range(_MAX_TURNS):
        if session.state.is_over:
            break
        play_turn(session, move_id, target_id)
    assert session.state.is_over, f"battle still running after {_MAX_TURNS} turns"
    return session.state


def scenario_practice_battle_runs_to_victory() -> bool:
    catalog = _catalog()
    store = InMemoryResourceStore()
    ended = []
    player = make_player("p1", "Ada", ["emotional_read", "mend"], catalog, store=store)
    dummy = make_cpu_opponent("training_dummy", catalog)
    session = CheckedSession(
        start_battle("practice", [player, dummy], "p1", seed=123),
        store=store,
        on_battle_end=lambda result, rewards: ended.append((result, rewards)),
    )

    state = play_until_over(session, "emotional_read", "training_dummy")

    assert state.phase == "victory", f"expected victory, got {state.phase}"
    assert state.participants["p1"].hp == 100, "a passive dummy should never hurt the player"
    assert ended and ended[0][0] == "victory"
    assert ended[0][1]["credited"] == ended[0][1]["stolen"], "a defeated side has no hp left to credit"
    assert any(pid == "training_dummy" for pid, _ in store.updates), "damage should be persisted"
    return True


def scenario_ice_golem_cutscene_then_defeat() -> bool:
    catalog = _catalog()
    store = InMemoryResourceStore({"p1": {"hp": 40, "hp_max": 100, "shield": 0, "shield_max": 0}})
    cutscenes = []
    player = make_player("p1", "Ada", ["pattern_shield"], catalog, store=store)
    golem = make_cpu_opponent("ice_golem", catalog)
    session = CheckedSession(
        start_battle("golem", [player, golem], "p1", seed=123),
        store=store,
        on_cutscene=cutscenes.append,
    )

    play_until_over(session, "pattern_shield")

    assert [c["cutscene"] for c in cutscenes] == ["icy_death"], "the golem's finisher should play once"
    assert cutscenes[0]["winner"] == "enemy"
    assert session.state.phase == "defeat"
    assert session.state.interrupt is None, "interrupt should be cleared after the cutscene"
    return True


def scenario_round_mode_with_cpu_ally() -> bool:
    catalog = _catalog()
    player = make_player("p1", "Ada", ["emotional_read"], catalog)
    ally = Participant(
        id="ward",
        name="Ward",
        role="ally",
        controller="cpu",
        archetype="aggressive",
        moves=[catalog.resolve("reality_rewrite")],
    )
    dummy = make_cpu_opponent("training_dummy", catalog)
    session = CheckedSession(start_battle("trio", [player, ally, dummy], "p1", seed=123))
    assert session.state.is_round_mode, "three live participants should resolve in rounds"

    play_until_over(session, "emotional_read", "training_dummy")

    assert session.state.phase == "victory"
    assert any(line.startswith("Ward uses Reality Rewrite") for line in session.state.log), \
        "the CPU ally should act in each round"
    return True


def _pvp_side(channel, me, peer, catalog):
    a = make_player(me, me.upper(), ["reality_rewrite"], catalog)
    b = make_player(peer, peer.upper(), ["reality_rewrite"], catalog, role="opponent")
    feed = PollingMoveFeed(channel, "duel", me, spawn=lambda fn: None)
    session = CheckedSession(start_battle("duel", [a, b], me, seed=123, pvp=True), channel=channel, feed=feed)
    session.start_feed()
    return session, feed


def scenario_pvp_exchange_over_shared_channel() -> bool:
    catalog = _catalog()
    channel = InMemoryMoveChannel()
    alice, alice_feed = _pvp_side(channel, "p1", "p2", catalog)
    bob, bob_feed = _pvp_side(channel, "p2", "p1", catalog)
    assert bob.state.phase == "opponent_turn", "the second mover should start by waiting"

    for turn in (1, 2, 3):
        alice.select("reality_rewrite", "p2")
        alice.pump()
        assert alice.state.phase == "opponent_turn", "alice should wait on her peer"

        assert bob_feed.poll_once() == 1
        assert bob.state.phase == "selection", "bob should act once alice's move lands"
        bob.select("reality_rewrite", "p1")
        bob.pump()
        assert bob.state.turn == turn + 1, "bob's move should close the turn"
        assert not bob.pending

        assert alice_feed.poll_once() == 1
        assert alice.state.turn == turn + 1, "alice should apply bob's move"
        assert state_extract(alice.state)["participants"] == state_extract(bob.state)["participants"], \
            "both clients should hold the same resources and effects"

    assert alice_feed.poll_once() == 0, "records are delivered once per observer"
    assert any(line.startswith("P2 uses Reality Rewrite") for line in alice.state.log)
    assert any(line.startswith("P1 uses Reality Rewrite") for line in bob.state.log)
    return True


def scenario_escape_forfeits_rewards() -> bool:
    catalog = _catalog()
    ended = []
    player = make_player("p1", "Ada", ["emotional_read"], catalog)
    zombie = make_cpu_opponent("powered_zombie", catalog)
    session = CheckedSession(
        start_battle("run", [player, zombie], "p1", seed=123),
        on_battle_end=lambda result, rewards: ended.append((result, rewards)),
    )

    play_turn(session, "emotional_read", "powered_zombie")
    assert session.escape(), "escape should be accepted during selection"

    assert session.state.phase == "escape"
    assert ended == [("escape", {})], "escaping forfeits every reward"
    assert not session.select("emotional_read", "powered_zombie"), "no moves after escaping"
    return True


def scenario_long_battle_keeps_invariants() -> bool:
    catalog = _catalog()
    player = make_player("p1", "Ada", ["ember_lash", "mend", "pattern_shield", "emotional_read"], catalog)
    guardian = make_cpu_opponent("master_guardian", catalog)
    session = CheckedSession(start_battle("soak", [player, guardian], "p1", seed=123))

    rotation = ["ember_lash", "emotional_read", "mend", "pattern_shield"]
    for index in range(_MAX_TURNS):
        if session.state.is_over:
            break
        move_id = rotation[index % len(rotation)]
        target = "master_guardian" if move_id in ("ember_lash", "emotional_read") else None
        play_turn(session, move_id, target)
    return True


SCENARIOS = [
    scenario_practice_battle_runs_to_victory,
    scenario_ice_golem_cutscene_then_defeat,
    scenario_round_mode_with_cpu_ally,
    scenario_pvp_exchange_over_shared_channel,
    scenario_escape_forfeits_rewards,
    scenario_long_battle_keeps_invariants,
]


def run_all(scenarios=None) -> List[Tuple[str, bool, str]]:
    results: List[Tuple[str, bool, str]] = []
    for scenario in scenarios or SCENARIOS:
        try:
            scenario()
            results.append((scenario.__name__, True, ""))
        except AssertionError as exc:
            results.append((scenario.__name__, False, str(exc)))
    return results
