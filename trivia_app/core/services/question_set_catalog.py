"""Service holding the question sets available to the host."""

from __future__ import annotations

from collections.abc import Iterable

from trivia_app.core.models import QuestionSet


class QuestionSetCatalog:
    """Read-mostly collection of validated question sets keyed by id."""

    def __init__(self, sets: Iterable[QuestionSet] = ()) -> None:
        self._sets: dict[str, QuestionSet] = {}
        self.replace_all(sets)

    def list(self) -> list[QuestionSet]:
        """Return all sets in load order."""
        return list(self._sets.values())

    def get(self, set_id: str) -> QuestionSet | None:
        return self._sets.get(set_id)

    def replace_all(self, sets: Iterable[QuestionSet]) -> None:
        """Swap in a freshly loaded collection; sets missing from it become unresolvable."""
        self._sets = {question_set.id: question_set for question_set in sets}

    def remove(self, set_id: str) -> bool:
        return self._sets.pop(set_id, None) is not None

    def __len__(self) -> int:
        return len(self._sets)
