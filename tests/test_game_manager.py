import asyncio

import pytest

from trivia_app.core.errors import ConflictError, NicknameTakenError
from trivia_app.core.services.answer_ledger import SubmitOutcome


def drain(subscription):
    """Return the newest queued snapshot, or None if nothing arrived."""
    return subscription.receive(timeout=0.05)


def test_subscribe_delivers_snapshot_immediately(manager):
    async def scenario():
        sub = manager.subscribe(None, asyncio.get_running_loop())
        return await drain(sub)

    snapshot = asyncio.run(scenario())
    assert snapshot["question"]["status"] == "idle"
    assert snapshot["players_online"] == 0


def test_mutation_pushes_personalized_snapshots(manager):
    async def scenario():
        loop = asyncio.get_running_loop()
        ann = manager.join("Ann")
        bob = manager.join("Bob")
        ann_sub = manager.subscribe(ann.id, loop)
        bob_sub = manager.subscribe(bob.id, loop)
        await drain(ann_sub)
        await drain(bob_sub)

        manager.ask_custom("Q?", ["a", "b"])
        manager.submit_answer(ann.id, 1)

        return await drain(ann_sub), await drain(bob_sub)

    ann_view, bob_view = asyncio.run(scenario())
    assert ann_view["question"]["status"] == "active"
    assert ann_view["self_answer"]["answer_index"] == 1
    assert bob_view["self_answer"] is None
    assert ann_view["answer_counts"] == bob_view["answer_counts"] == [0, 1]
    assert ann_view["players_online"] == 2


def test_failed_operation_broadcasts_nothing(manager):
    async def scenario():
        sub = manager.subscribe(None, asyncio.get_running_loop())
        await drain(sub)
        with pytest.raises(ConflictError):
            manager.reveal_manual(0)
        return await drain(sub)

    assert asyncio.run(scenario()) is None


def test_duplicate_submit_broadcasts_nothing(manager):
    async def scenario():
        manager.ask_custom("Q?", ["a", "b"])
        assert manager.submit_answer("p1", 0, "Ann") is SubmitOutcome.ACCEPTED
        sub = manager.subscribe(None, asyncio.get_running_loop())
        await drain(sub)
        assert manager.submit_answer("p1", 1) is SubmitOutcome.DUPLICATE
        return await drain(sub)

    assert asyncio.run(scenario()) is None


def test_online_count_follows_connections(manager):
    async def scenario():
        loop = asyncio.get_running_loop()
        ann = manager.join("Ann")
        watcher = manager.subscribe(None, loop)
        await drain(watcher)

        ann_sub = manager.subscribe(ann.id, loop)
        after_connect = await drain(watcher)
        manager.unsubscribe(ann_sub)
        after_disconnect = await drain(watcher)
        return after_connect, after_disconnect

    after_connect, after_disconnect = asyncio.run(scenario())
    assert after_connect["players_online"] == 1
    assert after_disconnect["players_online"] == 0


def test_leave_closes_connections_but_keeps_player(manager):
    async def scenario():
        loop = asyncio.get_running_loop()
        ann = manager.join("Ann")
        ann_sub = manager.subscribe(ann.id, loop)
        await drain(ann_sub)

        removed = manager.leave(ann.id)
        await ann_sub.receive(timeout=0.05)
        return ann, removed, ann_sub.closed, manager.leave(ann.id)

    ann, removed, closed, removed_again = asyncio.run(scenario())
    assert removed is True
    assert closed is True
    assert removed_again is False
    assert manager.get_player(ann.id).nickname == "Ann"
    assert manager.online_player_count() == 0


def test_join_conflict_carries_five_free_suggestions(manager):
    manager.join("Ann")
    with pytest.raises(NicknameTakenError) as excinfo:
        manager.join("Ann", "different-id")

    suggestions = excinfo.value.suggestions
    taken = {p.nickname.lower() for p in manager.players()}
    assert len(suggestions) == 5
    assert len({s.lower() for s in suggestions}) == 5
    assert all(s and s.lower() not in taken for s in suggestions)


def test_reset_keeps_identities(manager):
    ann = manager.join("Ann")
    manager.start_set("general")
    manager.advance_set()
    manager.submit_answer(ann.id, 0)
    manager.reveal_set()
    assert manager.get_player(ann.id).score == 10

    manager.reset()

    snapshot = manager.snapshot(ann.id)
    assert manager.get_player(ann.id).score == 0
    assert manager.get_player(ann.id).nickname == "Ann"
    assert snapshot["question"]["status"] == "idle"
    assert snapshot["active_set"] is None
    assert snapshot["leaderboard"] == []
    assert snapshot["zero_score_count"] == 1


def test_replacing_sets_makes_active_set_gone(manager):
    from trivia_app.core.errors import GoneError

    manager.start_set("general")
    manager.replace_sets([])
    assert manager.list_sets() == []
    with pytest.raises(GoneError):
        manager.advance_set()


def test_dead_subscriber_drop_refreshes_online_count(manager):
    dead_loop = asyncio.new_event_loop()
    dead_loop.close()

    async def scenario():
        watcher = manager.subscribe(None, asyncio.get_running_loop())
        await drain(watcher)
        ghost = manager.join("Ghost")

        manager.subscribe(ghost.id, dead_loop)
        return await drain(watcher)

    latest = asyncio.run(scenario())
    assert latest["players_online"] == 0
    assert manager.online_player_count() == 0
