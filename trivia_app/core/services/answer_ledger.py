"""Per-question record of submitted answers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from trivia_app.core.models import Answer


class SubmitOutcome(str, Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


class AnswerLedger:
    """Holds at most one answer per player for the live question.

    State checks (is a question active, is the index in range) belong to the
    round state machine; the ledger only enforces first-submission-wins.
    """

    def __init__(self) -> None:
        self._answers: dict[str, Answer] = {}

    def submit(self, player_id: str, answer_index: int) -> SubmitOutcome:
        if player_id in self._answers:
            return SubmitOutcome.DUPLICATE
        self._answers[player_id] = Answer(
            player_id=player_id,
            answer_index=answer_index,
            answered_at=datetime.now(timezone.utc),
        )
        return SubmitOutcome.ACCEPTED

    def score(self, correct_index: int, points: int, credit: Callable[[str, int], None]) -> list[str]:
        """Resolve every answer against ``correct_index`` and credit the winners.

        Returns the ids of the players that were credited.
        """
        credited: list[str] = []
        for answer in self._answers.values():
            answer.correct = answer.answer_index == correct_index
            if answer.correct:
                credit(answer.player_id, points)
                credited.append(answer.player_id)
        return credited

    def counts(self, option_count: int) -> list[int]:
        tally = [0] * option_count
        for answer in self._answers.values():
            if 0 <= answer.answer_index < option_count:
                tally[answer.answer_index] += 1
        return tally

    def get(self, player_id: str | None) -> Answer | None:
        if not player_id:
            return None
        return self._answers.get(player_id)

    def answers(self) -> list[Answer]:
        return list(self._answers.values())

    def clear(self) -> None:
        self._answers = {}

    def restore(self, answers: list[Answer]) -> None:
        self._answers = {answer.player_id: answer for answer in answers}

    def __len__(self) -> int:
        return len(self._answers)
