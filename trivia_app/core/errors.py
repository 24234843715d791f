"""Errors raised by game operations.

Each error carries the HTTP status the server layer reports it with, so the
core stays free of any web framework imports.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for rejected game operations."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, object]:
        return {"message": self.message}


class InvalidArgumentError(GameError, ValueError):
    """Malformed or out-of-range input."""

    status_code = 400


class ConflictError(GameError, RuntimeError):
    """Operation not valid for the current game state."""

    status_code = 409


class NotFoundError(GameError, LookupError):
    """Unknown set, or a set with no questions left."""

    status_code = 404


class GoneError(GameError):
    """A previously selected set can no longer be resolved."""

    status_code = 410


class NicknameTakenError(ConflictError):
    """Requested nickname belongs to another player."""

    def __init__(self, nickname: str, suggestions: list[str]) -> None:
        super().__init__("Nickname already taken. Pick another.")
        self.nickname = nickname
        self.suggestions = list(suggestions)

    def to_detail(self) -> dict[str, object]:
        return {"message": self.message, "suggestions": list(self.suggestions)}
