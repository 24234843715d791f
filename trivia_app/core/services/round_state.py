"""Service for the live question lifecycle and question-set progression."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from uuid import uuid4

from trivia_app.constants.game_constants import MAX_OPTIONS, MIN_OPTIONS, QUESTION_POINTS
from trivia_app.core.errors import ConflictError, GoneError, InvalidArgumentError, NotFoundError
from trivia_app.core.models import ActiveSet, Question, QuestionStatus, SourceSetRef
from trivia_app.core.services.answer_ledger import AnswerLedger, SubmitOutcome
from trivia_app.core.services.question_set_catalog import QuestionSetCatalog
from trivia_app.core.services.roster import Roster

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AdvanceResult:
    question_id: str
    set_id: str
    index: int
    remaining: int


class RoundStateMachine:
    """Owns the single live question, the active set cursor and the answer ledger.

    Every transition validates first and mutates second, so a raised error
    always leaves the state untouched.
    """

    def __init__(
        self,
        roster: Roster,
        catalog: QuestionSetCatalog,
        ledger: AnswerLedger | None = None,
        points_per_question: int = QUESTION_POINTS,
    ) -> None:
        self._roster = roster
        self._catalog = catalog
        self._ledger = ledger or AnswerLedger()
        self._points = points_per_question
        self._question = Question()
        self._active_set: ActiveSet | None = None
        # Correct index of the live set question; never exposed before reveal.
        self._set_answer_index: int | None = None

    @property
    def question(self) -> Question:
        return self._question

    @property
    def active_set(self) -> ActiveSet | None:
        return self._active_set

    @property
    def ledger(self) -> AnswerLedger:
        return self._ledger

    @property
    def set_answer_index(self) -> int | None:
        return self._set_answer_index

    def ask_custom(self, prompt: str, options: list[str]) -> Question:
        cleaned_prompt = str(prompt or "").strip()
        cleaned_options = [str(option or "").strip() for option in options or []]
        cleaned_options = [option for option in cleaned_options if option]
        if not cleaned_prompt:
            raise InvalidArgumentError("Question prompt must not be empty.")
        if not MIN_OPTIONS <= len(cleaned_options) <= MAX_OPTIONS:
            raise InvalidArgumentError(
                f"A question needs between {MIN_OPTIONS} and {MAX_OPTIONS} non-empty options."
            )

        self._replace_question(cleaned_prompt, cleaned_options, source_set=None)
        self._set_answer_index = None
        logger.info("Custom question %s asked with %d options", self._question.id, len(cleaned_options))
        return self._question

    def start_set(self, set_id: str) -> ActiveSet:
        question_set = self._catalog.get(str(set_id or "").strip())
        if question_set is None:
            raise NotFoundError("Question set not found.")

        self._active_set = ActiveSet(
            set_id=question_set.id,
            name=question_set.name,
            index=-1,
            total=question_set.total,
        )
        self._clear_question()
        logger.info("Question set %r selected (%d questions)", question_set.id, question_set.total)
        return self._active_set

    def advance_set(self) -> AdvanceResult:
        if self._active_set is None:
            raise ConflictError("No active set. Start one first.")
        if self._question.status is QuestionStatus.ACTIVE:
            raise ConflictError("Current question still live.")
        question_set = self._catalog.get(self._active_set.set_id)
        if question_set is None:
            raise GoneError("Active set data missing.")
        next_index = self._active_set.index + 1
        if next_index >= question_set.total:
            raise NotFoundError("No more questions in set.")

        set_question = question_set.questions[next_index]
        self._replace_question(
            set_question.prompt,
            list(set_question.options),
            source_set=SourceSetRef(
                set_id=question_set.id,
                set_name=question_set.name,
                index_within_set=next_index,
            ),
        )
        self._active_set.index = next_index
        self._active_set.total = question_set.total
        self._set_answer_index = set_question.correct_index
        logger.info("Set %r advanced to question %d/%d", question_set.id, next_index + 1, question_set.total)
        return AdvanceResult(
            question_id=self._question.id,
            set_id=question_set.id,
            index=next_index,
            remaining=question_set.total - next_index - 1,
        )

    def submit(self, player_id: str, answer_index: int, nickname: str | None = None) -> SubmitOutcome:
        if not player_id or not isinstance(player_id, str):
            raise InvalidArgumentError("Player ID is required.")
        if self._question.status is not QuestionStatus.ACTIVE:
            raise ConflictError("No active question.")
        if not self._index_in_range(answer_index):
            raise InvalidArgumentError("Invalid answer option.")

        self._roster.ensure(player_id, nickname)
        return self._ledger.submit(player_id, answer_index)

    def reveal_manual(self, correct_index: int) -> int:
        if self._question.status is not QuestionStatus.ACTIVE:
            raise ConflictError("No active question to reveal.")
        if not self._index_in_range(correct_index):
            raise InvalidArgumentError("Invalid correct option index.")
        self._reveal(correct_index)
        return correct_index

    def reveal_set(self) -> int:
        if self._question.status is not QuestionStatus.ACTIVE:
            raise ConflictError("No active question to reveal.")
        source = self._question.source_set
        if self._active_set is None or source is None or source.set_id != self._active_set.set_id:
            raise ConflictError("Current question is not from the active set.")
        correct_index = self._set_answer_index
        if correct_index is None or not self._index_in_range(correct_index):
            raise InvalidArgumentError("No stored correct answer for this set question.")
        self._reveal(correct_index)
        return correct_index

    def reset(self) -> None:
        self._clear_question()
        self._active_set = None
        self._roster.reset_scores()
        logger.info("Game reset: scores zeroed, question and set cleared")

    def restore(
        self,
        question: Question,
        active_set: ActiveSet | None,
        set_answer_index: int | None,
    ) -> None:
        self._question = question
        self._active_set = active_set
        self._set_answer_index = set_answer_index

    def _reveal(self, correct_index: int) -> None:
        credited = self._ledger.score(correct_index, self._points, self._roster.credit)
        self._question.status = QuestionStatus.REVEALED
        self._question.correct_index = correct_index
        self._set_answer_index = None
        logger.info(
            "Question %s revealed: option %d, %d of %d answers correct",
            self._question.id,
            correct_index,
            len(credited),
            len(self._ledger),
        )

    def _replace_question(self, prompt: str, options: list[str], source_set: SourceSetRef | None) -> None:
        self._question = Question(
            id=uuid4().hex,
            prompt=prompt,
            options=tuple(options),
            status=QuestionStatus.ACTIVE,
            created_at=datetime.now(timezone.utc),
            source_set=source_set,
        )
        self._ledger.clear()

    def _clear_question(self) -> None:
        self._question = Question()
        self._ledger.clear()
        self._set_answer_index = None

    def _index_in_range(self, index: object) -> bool:
        return (
            isinstance(index, int)
            and not isinstance(index, bool)
            and 0 <= index < len(self._question.options)
        )
