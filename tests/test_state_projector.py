import pytest

from trivia_app.core.services.round_state import RoundStateMachine
from trivia_app.core.services.state_projector import StateProjector


@pytest.fixture()
def machine(roster, catalog):
    return RoundStateMachine(roster, catalog, points_per_question=10)


def project(machine, roster, viewer_id=None, online=()):
    return StateProjector().project(
        question=machine.question,
        roster=roster,
        ledger=machine.ledger,
        active_set=machine.active_set,
        online_player_ids=set(online),
        viewer_id=viewer_id,
    )


def test_idle_snapshot(machine, roster):
    snapshot = project(machine, roster)

    assert snapshot["question"]["status"] == "idle"
    assert snapshot["question"]["id"] is None
    assert snapshot["question"]["prompt_html"] == ""
    assert snapshot["answer_counts"] == []
    assert snapshot["answers"] == []
    assert snapshot["self_answer"] is None
    assert snapshot["leaderboard"] == []
    assert snapshot["players_online"] == 0
    assert snapshot["active_set"] is None


def test_active_question_hides_correct_index_and_answers(machine, roster):
    ann = roster.register("Ann")
    machine.start_set("general")
    machine.advance_set()
    machine.submit(ann.id, 2)

    snapshot = project(machine, roster, viewer_id=ann.id)

    assert snapshot["question"]["status"] == "active"
    assert snapshot["question"]["correct_index"] is None
    assert snapshot["question"]["set_id"] == "general"
    assert snapshot["question"]["set_question_index"] == 0
    assert snapshot["answer_counts"] == [0, 0, 1, 0]
    assert snapshot["answers"] == []
    assert snapshot["self_answer"]["answer_index"] == 2
    assert snapshot["active_set"] == {"id": "general", "name": "General", "index": 0, "total": 3}


def test_self_answer_is_personalized(machine, roster):
    ann = roster.register("Ann")
    bob = roster.register("Bob")
    machine.ask_custom("Q?", ["a", "b"])
    machine.submit(ann.id, 1)

    assert project(machine, roster, viewer_id=ann.id)["self_answer"]["answer_index"] == 1
    assert project(machine, roster, viewer_id=bob.id)["self_answer"] is None
    assert project(machine, roster)["self_answer"] is None


def test_revealed_snapshot_lists_answers_with_nicknames(machine, roster):
    ann = roster.register("Ann")
    bob = roster.register("Bob")
    machine.ask_custom("Q?", ["a", "b"])
    machine.submit(ann.id, 0)
    machine.submit(bob.id, 1)
    machine.reveal_manual(0)

    snapshot = project(machine, roster, viewer_id=bob.id)

    assert snapshot["question"]["correct_index"] == 0
    assert [(a["nickname"], a["answer_index"], a["correct"]) for a in snapshot["answers"]] == [
        ("Ann", 0, True),
        ("Bob", 1, False),
    ]
    assert snapshot["self_answer"]["correct"] is False


def test_leaderboard_excludes_zero_scores_and_keeps_join_order_on_ties(roster):
    ann = roster.register("Ann")
    bob = roster.register("Bob")
    cat = roster.register("Cat")
    roster.register("Dan")
    roster.credit(bob.id, 10)
    roster.credit(cat.id, 20)
    roster.credit(ann.id, 10)

    board = StateProjector.leaderboard(roster.players())

    assert [(row["nickname"], row["score"]) for row in board] == [("Cat", 20), ("Ann", 10), ("Bob", 10)]


def test_zero_score_count_and_online_count(machine, roster):
    ann = roster.register("Ann")
    roster.register("Bob")
    roster.credit(ann.id, 10)

    snapshot = project(machine, roster, online={ann.id})

    assert snapshot["zero_score_count"] == 1
    assert snapshot["players_online"] == 1


def test_prompt_is_rendered_as_markdown(machine, roster):
    machine.ask_custom("Which is **bold**?", ["a", "b"])
    html = project(machine, roster)["question"]["prompt_html"]
    assert "<strong>bold</strong>" in html


def test_projection_has_no_side_effects(machine, roster):
    ann = roster.register("Ann")
    machine.ask_custom("Q?", ["a", "b"])
    machine.submit(ann.id, 0)

    first = project(machine, roster, viewer_id=ann.id)
    second = project(machine, roster, viewer_id=ann.id)

    assert first == second
    assert len(machine.ledger) == 1
