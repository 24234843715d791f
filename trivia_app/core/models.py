"""Domain models for the trivia game."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class QuestionStatus(str, Enum):
    """Lifecycle of the single live question."""

    IDLE = "idle"
    ACTIVE = "active"
    REVEALED = "revealed"


@dataclass(slots=True)
class Player:
    """A roster entry. Entries outlive connections and are never deleted."""

    id: str
    nickname: str
    score: int = 0


@dataclass(slots=True, frozen=True)
class SourceSetRef:
    """Links a live question back to the set position it was loaded from."""

    set_id: str
    set_name: str
    index_within_set: int


@dataclass(slots=True)
class Question:
    """The one question currently shown to players."""

    id: str | None = None
    prompt: str = ""
    options: tuple[str, ...] = ()
    status: QuestionStatus = QuestionStatus.IDLE
    correct_index: int | None = None
    created_at: datetime | None = None
    source_set: SourceSetRef | None = None


@dataclass(slots=True)
class Answer:
    """A player's single choice for the live question."""

    player_id: str
    answer_index: int
    answered_at: datetime
    correct: bool = False


@dataclass(slots=True)
class ActiveSet:
    """Cursor into a catalog set; index -1 means selected but not yet advanced."""

    set_id: str
    name: str
    index: int
    total: int


@dataclass(slots=True, frozen=True)
class SetQuestion:
    """Validated question loaded from a question set file."""

    prompt: str
    options: tuple[str, ...]
    correct_index: int


@dataclass(slots=True, frozen=True)
class QuestionSet:
    """Named, ordered collection of set questions."""

    id: str
    name: str
    questions: tuple[SetQuestion, ...]

    @property
    def total(self) -> int:
        return len(self.questions)
