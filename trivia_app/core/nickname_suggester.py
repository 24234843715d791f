"""Utility for proposing alternative nicknames when a requested one is taken."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import random
from threading import Lock

from trivia_app.constants.game_constants import MAX_NICKNAME_LENGTH, SUGGESTION_COUNT

_SUFFIXES = [
    "Slayer",
    "Rider",
    "Blade",
    "Hunter",
    "Ghost",
    "Shadow",
    "Strike",
    "Storm",
    "Nova",
    "Vortex",
    "Fury",
    "Drift",
    "Rogue",
    "Phantom",
    "Wolf",
    "Dragon",
    "Reaper",
    "Flash",
    "Venom",
    "Spike",
    "Burst",
]
_MODIFIERS = ["", "X", "Pro", "Ultra", "Neo", "Dark", "Night", "Zero", "Alpha", "Omega"]
_NUMBERS = ["", "07", "13", "99", "404", "777", "1337"]

# Random draws before falling back to numbered names.
_MAX_RANDOM_ATTEMPTS = 200


class NicknameSuggester:
    """Builds distinct, unclaimed variations of a base nickname."""

    def __init__(self, rng: random.Random | None = None, max_length: int = MAX_NICKNAME_LENGTH):
        self._rng = rng or random.Random()
        self._lock = Lock()
        self._max_length = max_length

    def candidate(self, base: str) -> str:
        """Return one random variation: base + modifier + suffix + number."""
        with self._lock:
            modifier = self._rng.choice(_MODIFIERS)
            suffix = self._rng.choice(_SUFFIXES)
            number = self._rng.choice(_NUMBERS)
        tail = f"{modifier}{suffix}{number}"
        return _fit(base, tail, self._max_length)

    def suggest(
        self,
        base: str,
        is_taken: Callable[[str], bool],
        count: int = SUGGESTION_COUNT,
    ) -> list[str]:
        """Return ``count`` mutually distinct names for which ``is_taken`` is false.

        Uniqueness is compared case-insensitively, matching how the roster
        compares nicknames.
        """
        picked: list[str] = []
        seen: set[str] = set()

        def accept(name: str) -> None:
            lowered = name.lower()
            if lowered in seen or is_taken(name):
                return
            seen.add(lowered)
            picked.append(name)

        attempts = 0
        while len(picked) < count and attempts < _MAX_RANDOM_ATTEMPTS:
            attempts += 1
            accept(self.candidate(base))

        for name in _numbered(base, self._max_length):
            if len(picked) >= count:
                break
            accept(name)
        return picked


def _fit(base: str, tail: str, max_length: int) -> str:
    room = max(1, max_length - len(tail))
    return f"{base[:room]}{tail}"[:max_length]


def _numbered(base: str, max_length: int) -> Iterable[str]:
    number = 2
    while True:
        yield _fit(base, str(number), max_length)
        number += 1
