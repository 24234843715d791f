"""Service for managing player identities, nicknames and scores."""

from __future__ import annotations

import logging
from uuid import uuid4

from trivia_app.constants.game_constants import DEFAULT_NICKNAME, MAX_NICKNAME_LENGTH
from trivia_app.core.errors import NicknameTakenError
from trivia_app.core.models import Player
from trivia_app.core.nickname_suggester import NicknameSuggester

logger = logging.getLogger(__name__)


def clean_nickname(raw: object) -> str:
    """Trim and truncate a requested nickname, falling back to a default."""
    text = str(raw or "").strip()[:MAX_NICKNAME_LENGTH].strip()
    return text or DEFAULT_NICKNAME


class Roster:
    """Tracks every player that ever joined, keyed by their opaque id."""

    def __init__(self, suggester: NicknameSuggester | None = None) -> None:
        self._players: dict[str, Player] = {}
        self._suggester = suggester or NicknameSuggester()

    def register(self, nickname: str, existing_id: str | None = None) -> Player:
        """Join or re-join the game under ``nickname``.

        Raises NicknameTakenError when another player already holds the name.
        """
        nickname = clean_nickname(nickname)
        existing = self._players.get(existing_id) if existing_id else None
        if existing is not None and existing.nickname.lower() == nickname.lower():
            return existing

        holder = self._holder_of(nickname)
        if holder is not None and holder.id != existing_id:
            suggestions = self._suggester.suggest(nickname, self.is_nickname_taken)
            raise NicknameTakenError(nickname, suggestions)

        if existing is not None:
            logger.info("Player %s renamed %r -> %r", existing.id, existing.nickname, nickname)
            existing.nickname = nickname
            return existing

        player = Player(id=existing_id or uuid4().hex, nickname=nickname)
        self._players[player.id] = player
        logger.info("Player %r joined as %s", nickname, player.id)
        return player

    def ensure(self, player_id: str, fallback_nickname: str | None = None) -> Player:
        """Return the player for ``player_id``, creating a zero-score entry if unknown."""
        player = self._players.get(player_id)
        if player is not None:
            return player
        nickname = clean_nickname(fallback_nickname)
        if self.is_nickname_taken(nickname):
            nickname = self._suggester.suggest(nickname, self.is_nickname_taken, count=1)[0]
        player = Player(id=player_id, nickname=nickname)
        self._players[player_id] = player
        return player

    def credit(self, player_id: str, points: int) -> None:
        player = self._players.get(player_id)
        if player is not None:
            player.score += points

    def reset_scores(self) -> None:
        for player in self._players.values():
            player.score = 0

    def get(self, player_id: str | None) -> Player | None:
        if not player_id:
            return None
        return self._players.get(player_id)

    def nickname_for(self, player_id: str) -> str:
        player = self._players.get(player_id)
        return player.nickname if player is not None else DEFAULT_NICKNAME

    def players(self) -> list[Player]:
        """Return players in the order they first joined."""
        return list(self._players.values())

    def is_nickname_taken(self, nickname: str) -> bool:
        return self._holder_of(nickname) is not None

    def restore(self, players: list[Player]) -> None:
        self._players = {player.id: player for player in players}

    def _holder_of(self, nickname: str) -> Player | None:
        lowered = nickname.lower()
        return next((p for p in self._players.values() if p.nickname.lower() == lowered), None)
