"""Utilities for loading question sets from JSON files.

Each ``*.json`` file in the sets directory describes one set:

    {
      "id": "general",             (optional, defaults to the file name)
      "name": "General Knowledge", (optional, defaults to the id)
      "questions": [
        {"prompt": "Capital of France?", "options": ["Paris", "Rome"], "correct_index": 0}
      ]
    }

``correctIndex`` is accepted as an alias of ``correct_index``. Invalid
questions are skipped with a warning; a file is skipped when nothing valid
remains, so one bad file never prevents the server from starting.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from trivia_app.constants.game_constants import MAX_OPTIONS, MIN_OPTIONS
from trivia_app.core.models import QuestionSet, SetQuestion

logger = logging.getLogger(__name__)


class QuestionSetImportError(Exception):
    """Raised when a question set definition cannot be used."""


def load_question_sets(directory: Path) -> list[QuestionSet]:
    """Load every valid set in ``directory``, sorted by file name."""
    directory = Path(directory)
    if not directory.is_dir():
        logger.info("Question set directory %s not found; no sets loaded", directory)
        return []

    sets: list[QuestionSet] = []
    for file_path in sorted(directory.glob("*.json")):
        try:
            sets.append(load_question_set_file(file_path))
        except QuestionSetImportError as exc:
            logger.warning("Skipping set %s: %s", file_path.name, exc)
    logger.info("Loaded %d question set(s) from %s", len(sets), directory)
    return sets


def load_question_set_file(file_path: Path) -> QuestionSet:
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise QuestionSetImportError(f"could not read JSON ({exc})") from exc
    return parse_question_set(raw, default_id=file_path.stem)


def parse_question_set(raw: object, default_id: str) -> QuestionSet:
    if not isinstance(raw, dict):
        raise QuestionSetImportError("top-level value must be an object")
    raw_questions = raw.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise QuestionSetImportError("no questions")

    set_id = str(raw.get("id") or default_id).strip() or default_id
    name = str(raw.get("name") or set_id).strip() or set_id

    questions: list[SetQuestion] = []
    for position, raw_question in enumerate(raw_questions):
        try:
            questions.append(_parse_question(raw_question))
        except QuestionSetImportError as exc:
            logger.warning("Skipping question %d in set %r: %s", position, set_id, exc)
    if not questions:
        raise QuestionSetImportError("no valid questions")
    return QuestionSet(id=set_id, name=name, questions=tuple(questions))


def _parse_question(raw: object) -> SetQuestion:
    if not isinstance(raw, dict):
        raise QuestionSetImportError("question must be an object")

    prompt = str(raw.get("prompt") or "").strip()
    raw_options = raw.get("options")
    options = [str(option or "").strip() for option in raw_options] if isinstance(raw_options, list) else []
    options = [option for option in options if option][:MAX_OPTIONS]
    if not prompt:
        raise QuestionSetImportError("prompt missing")
    if len(options) < MIN_OPTIONS:
        raise QuestionSetImportError(f"needs at least {MIN_OPTIONS} options")

    raw_correct = raw.get("correct_index", raw.get("correctIndex"))
    if isinstance(raw_correct, bool):
        raise QuestionSetImportError("correct_index must be an integer")
    try:
        correct_index = int(raw_correct)
    except (TypeError, ValueError) as exc:
        raise QuestionSetImportError("correct_index must be an integer") from exc
    if not 0 <= correct_index < len(options):
        raise QuestionSetImportError("correct_index out of range")

    return SetQuestion(prompt=prompt, options=tuple(options), correct_index=correct_index)
