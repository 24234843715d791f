import pytest

from trivia_app.core.errors import NicknameTakenError
from trivia_app.core.services.roster import clean_nickname


def test_clean_nickname_trims_truncates_and_defaults():
    assert clean_nickname("  Ann  ") == "Ann"
    assert clean_nickname("x" * 40) == "x" * 24
    assert clean_nickname("   ") == "Player"
    assert clean_nickname(None) == "Player"


def test_register_creates_player_with_zero_score(roster):
    player = roster.register("Ann")
    assert player.nickname == "Ann"
    assert player.score == 0
    assert player.id
    assert roster.get(player.id) is player


def test_register_uses_existing_id_for_unknown_player(roster):
    player = roster.register("Ann", existing_id="stored-id")
    assert player.id == "stored-id"


def test_duplicate_nickname_from_other_player_is_rejected_with_suggestions(roster):
    roster.register("Ann")

    with pytest.raises(NicknameTakenError) as excinfo:
        roster.register("ann", existing_id="someone-else")

    suggestions = excinfo.value.suggestions
    assert len(suggestions) == 5
    assert len({s.lower() for s in suggestions}) == 5
    assert all(s and not roster.is_nickname_taken(s) for s in suggestions)
    assert [p.nickname for p in roster.players()] == ["Ann"]


def test_rejoin_with_same_name_is_idempotent(roster):
    player = roster.register("Ann")
    roster.credit(player.id, 10)

    again = roster.register("ANN", existing_id=player.id)

    assert again is player
    assert again.nickname == "Ann"
    assert again.score == 10
    assert len(roster.players()) == 1


def test_rename_keeps_score(roster):
    player = roster.register("Ann")
    roster.credit(player.id, 20)

    renamed = roster.register("Annie", existing_id=player.id)

    assert renamed.id == player.id
    assert renamed.nickname == "Annie"
    assert renamed.score == 20
    assert not roster.is_nickname_taken("Ann")


def test_rename_to_someone_elses_name_is_rejected(roster):
    ann = roster.register("Ann")
    roster.register("Bob")

    with pytest.raises(NicknameTakenError):
        roster.register("bob", existing_id=ann.id)
    assert ann.nickname == "Ann"


def test_ensure_creates_silently_and_keeps_uniqueness(roster):
    roster.register("Ann")

    created = roster.ensure("reloaded-id", "Ann")

    assert created.id == "reloaded-id"
    assert created.score == 0
    assert created.nickname.lower() != "ann"
    assert roster.ensure("reloaded-id", "Other") is created


def test_credit_unknown_player_is_noop(roster):
    roster.credit("ghost", 10)
    assert roster.get("ghost") is None


def test_reset_scores_keeps_identities(roster):
    ann = roster.register("Ann")
    bob = roster.register("Bob")
    roster.credit(ann.id, 10)
    roster.credit(bob.id, 30)

    roster.reset_scores()

    assert [(p.id, p.nickname, p.score) for p in roster.players()] == [
        (ann.id, "Ann", 0),
        (bob.id, "Bob", 0),
    ]


def test_nickname_for_unknown_player_falls_back():
    from trivia_app.core.services.roster import Roster

    assert Roster().nickname_for("missing") == "Player"
