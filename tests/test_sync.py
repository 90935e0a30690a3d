import pytest

from vaultclash.engine.errors import ChannelError
from vaultclash.engine.machine import Execute, Select, reduce
from vaultclash.engine.models import PublishedMoveRecord
from vaultclash.engine.sync import (
    InMemoryMoveChannel,
    PollingMoveFeed,
    PushMoveFeed,
    build_outcome_record,
    build_selection_record,
)

from conftest import duel


def _record(actor_id="p2", round_id="r1", **fields):
    return PublishedMoveRecord(round_id=round_id, actor_id=actor_id, move_id="strike", **fields)


def test_published_records_are_visible_to_peers_only():
    channel = InMemoryMoveChannel()
    record_id = channel.publish_move("r1", _record())
    assert [r.id for r in channel.poll_unprocessed_moves("r1", "p1")] == [record_id]
    assert channel.poll_unprocessed_moves("r1", "p2") == []


def test_mark_processed_hides_record_for_that_observer():
    channel = InMemoryMoveChannel()
    record_id = channel.publish_move("r1", _record())
    channel.mark_processed(record_id, "p1")
    channel.mark_processed(record_id, "p1")
    assert channel.poll_unprocessed_moves("r1", "p1") == []
    assert channel.get(record_id).processed_by == ["p1"]
    assert len(channel.poll_unprocessed_moves("r1", "p3")) == 1


def test_mark_processed_unknown_record():
    with pytest.raises(ChannelError):
        InMemoryMoveChannel().mark_processed("missing", "p1")


def test_polling_feed_applies_each_record_once_in_timestamp_order():
    channel = InMemoryMoveChannel()
    channel.publish_move("r1", _record(move_name="late", timestamp=5.0))
    channel.publish_move("r1", _record(move_name="early", timestamp=1.0))

    seen = []
    feed = PollingMoveFeed(channel, "r1", "p1", spawn=lambda fn: None)
    feed.start(lambda record: seen.append(record.move_name))

    assert feed.poll_once() == 2
    assert feed.poll_once() == 0
    assert seen == ["early", "late"]


def test_push_feed_redelivery_is_a_no_op():
    channel = InMemoryMoveChannel()
    record_id = channel.publish_move("r1", _record())
    record = channel.get(record_id)

    seen = []
    feed = PushMoveFeed(channel, "r1", "p1")
    feed.start(seen.append)
    assert feed.deliver(record)
    assert not feed.deliver(record)
    assert len(seen) == 1
    assert channel.poll_unprocessed_moves("r1", "p1") == []


def test_push_feed_ignores_other_rounds_and_own_records():
    channel = InMemoryMoveChannel()
    feed = PushMoveFeed(channel, "r1", "p1")
    feed.start(lambda record: None)
    assert not feed.deliver(_record(id="x", round_id="r2"))
    assert not feed.deliver(_record(actor_id="p1", id="y"))


def test_poll_failures_are_swallowed():
    class BrokenChannel(InMemoryMoveChannel):
        def poll_unprocessed_moves(self, round_id, self_id):
            raise ConnectionError("offline")

    feed = PollingMoveFeed(BrokenChannel(), "r1", "p1", spawn=lambda fn: None)
    feed.start(lambda record: None)
    assert feed.poll_once() == 0


def test_run_loops_until_stopped():
    channel = InMemoryMoveChannel()
    ticks = []

    def fake_sleep(seconds):
        ticks.append(seconds)
        if len(ticks) == 3:
            feed.stop()

    feed = PollingMoveFeed(channel, "r1", "p1", interval=0.5, sleep=fake_sleep, spawn=lambda fn: None)
    feed.start(lambda record: None)
    feed.run()
    assert ticks == [0.5, 0.5, 0.5]


def test_outcome_record_carries_log_lines_and_snapshot():
    before = reduce(duel(pvp=True), Select("p1", "strike", "cpu"))
    after = reduce(before, Execute())
    record = build_outcome_record(before, after, "p1")

    assert record.kind == "outcome"
    assert record.actor_id == "p1"
    assert record.move_id == "strike"
    assert record.target_id == "cpu"
    assert record.log_lines == after.log[len(before.log):]
    assert record.snapshot["target"]["hp"] == after.participants["cpu"].hp
    assert record.deltas["primary"] == after.participants["cpu"].hp - 100
    assert record.turn == 1


def test_selection_record():
    record = build_selection_record(duel(), "p1", "strike", "cpu")
    assert record.kind == "selection"
    assert record.move_name == "Strike"
    assert record.round_id == "test-battle"


def test_record_wire_round_trip_drops_unknown_keys():
    payload = _record(id="abc", deltas={"shield": -3, "primary": -2}).to_dict()
    payload["extra"] = "ignored"
    restored = PublishedMoveRecord.from_dict(payload)
    assert restored.id == "abc"
    assert restored.deltas == {"shield": -3, "primary": -2}
