"""Best-effort durable mirror of the game state.

The in-memory state is always authoritative. After each mutation the
manager hands a serialized blob to a ``WriteBehindWriter`` which saves it on
a background thread; the blob is read back only when the process starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import json
import logging
import os
from pathlib import Path
import tempfile
from threading import Condition, Thread
from typing import Protocol

from trivia_app.core.models import ActiveSet, Answer, Player, Question, QuestionStatus, SourceSetRef

logger = logging.getLogger(__name__)

_BLOB_VERSION = 1


class StateStore(Protocol):
    def save(self, blob: dict[str, object]) -> None: ...

    def load(self) -> dict[str, object] | None: ...


class JsonFileStateStore:
    """Stores the blob as a JSON document, replacing the file atomically."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, blob: dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=self._path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(blob, handle)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> dict[str, object] | None:
        if not self._path.exists():
            return None
        return json.loads(self._path.read_text(encoding="utf-8"))


class WriteBehindWriter:
    """Saves blobs on a daemon thread; only the newest pending blob is written."""

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._condition = Condition()
        self._pending: dict[str, object] | None = None
        self._busy = False
        self._stopped = False
        self._thread = Thread(target=self._run, name="TriviaStateWriter", daemon=True)
        self._thread.start()

    def submit(self, blob: dict[str, object]) -> None:
        with self._condition:
            self._pending = blob
            self._condition.notify_all()

    def flush(self, timeout: float | None = None) -> bool:
        """Block until nothing is pending or being written. Returns False on timeout."""
        with self._condition:
            return self._condition.wait_for(lambda: self._pending is None and not self._busy, timeout)

    def close(self, timeout: float | None = 5.0) -> None:
        self.flush(timeout)
        with self._condition:
            self._stopped = True
            self._condition.notify_all()
        self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            with self._condition:
                self._condition.wait_for(lambda: self._pending is not None or self._stopped)
                if self._pending is None:
                    return
                blob, self._pending = self._pending, None
                self._busy = True
            try:
                self._store.save(blob)
            except Exception:
                logger.exception("Failed to persist game state")
            finally:
                with self._condition:
                    self._busy = False
                    self._condition.notify_all()


@dataclass(slots=True)
class RestoredState:
    players: list[Player] = field(default_factory=list)
    question: Question = field(default_factory=Question)
    answers: list[Answer] = field(default_factory=list)
    active_set: ActiveSet | None = None
    set_answer_index: int | None = None


def encode_state(
    players: list[Player],
    question: Question,
    answers: list[Answer],
    active_set: ActiveSet | None,
    set_answer_index: int | None,
) -> dict[str, object]:
    source = question.source_set
    return {
        "version": _BLOB_VERSION,
        "players": [{"id": p.id, "nickname": p.nickname, "score": p.score} for p in players],
        "question": {
            "id": question.id,
            "prompt": question.prompt,
            "options": list(question.options),
            "status": question.status.value,
            "correct_index": question.correct_index,
            "created_at": question.created_at.isoformat() if question.created_at else None,
            "source_set": (
                {
                    "set_id": source.set_id,
                    "set_name": source.set_name,
                    "index_within_set": source.index_within_set,
                }
                if source
                else None
            ),
        },
        "answers": [
            {
                "player_id": a.player_id,
                "answer_index": a.answer_index,
                "answered_at": a.answered_at.isoformat(),
                "correct": a.correct,
            }
            for a in answers
        ],
        "active_set": (
            {
                "set_id": active_set.set_id,
                "name": active_set.name,
                "index": active_set.index,
                "total": active_set.total,
            }
            if active_set
            else None
        ),
        "set_answer_index": set_answer_index,
    }


def decode_state(blob: object) -> RestoredState:
    """Rebuild domain objects from a blob. Raises ValueError/KeyError/TypeError on malformed or wrongly shaped input."""
    blob = _require_object(blob, "state blob")
    if blob.get("version") != _BLOB_VERSION:
        raise ValueError(f"Unsupported state blob version: {blob.get('version')!r}")

    raw_question = _require_object(blob.get("question") or {}, "question")
    raw_source = _optional_object(raw_question.get("source_set"), "question.source_set")
    raw_active = _optional_object(blob.get("active_set"), "active_set")
    raw_players = [_require_object(raw, "player") for raw in _require_list(blob.get("players", []), "players")]
    raw_answers = [_require_object(raw, "answer") for raw in _require_list(blob.get("answers", []), "answers")]
    created_at = raw_question.get("created_at")
    question = Question(
        id=raw_question.get("id"),
        prompt=raw_question.get("prompt", ""),
        options=tuple(raw_question.get("options", ())),
        status=QuestionStatus(raw_question.get("status", QuestionStatus.IDLE.value)),
        correct_index=raw_question.get("correct_index"),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
        source_set=SourceSetRef(**raw_source) if raw_source else None,
    )
    return RestoredState(
        players=[Player(**raw) for raw in raw_players],
        question=question,
        answers=[
            Answer(
                player_id=raw["player_id"],
                answer_index=raw["answer_index"],
                answered_at=datetime.fromisoformat(raw["answered_at"]),
                correct=raw.get("correct", False),
            )
            for raw in raw_answers
        ],
        active_set=ActiveSet(**raw_active) if raw_active else None,
        set_answer_index=blob.get("set_answer_index"),
    )


def _require_object(value: object, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def _optional_object(value: object, what: str) -> dict | None:
    return _require_object(value, what) if value else None


def _require_list(value: object, what: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a JSON array, got {type(value).__name__}")
    return value
