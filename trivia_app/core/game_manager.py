"""Business logic for the shared game state, used by the API layer."""

from __future__ import annotations

import asyncio
import logging
from threading import Lock

from trivia_app.constants.game_constants import QUESTION_POINTS
from trivia_app.core.models import ActiveSet, Player, Question, QuestionSet
from trivia_app.core.nickname_suggester import NicknameSuggester
from trivia_app.core.services.answer_ledger import AnswerLedger, SubmitOutcome
from trivia_app.core.services.broadcast_hub import BroadcastHub, Snapshot, Subscription
from trivia_app.core.services.question_set_catalog import QuestionSetCatalog
from trivia_app.core.services.roster import Roster
from trivia_app.core.services.round_state import AdvanceResult, RoundStateMachine
from trivia_app.core.services.state_projector import StateProjector
from trivia_app.core.services.state_store import (
    StateStore,
    WriteBehindWriter,
    decode_state,
    encode_state,
)

logger = logging.getLogger(__name__)


class GameManager:
    """Facade and single owner of Roster, RoundStateMachine, AnswerLedger and BroadcastHub.

    Each public operation runs under one lock: validate, mutate, then queue a
    persistence write and push a fresh snapshot to every subscriber. Failed
    operations raise a ``GameError`` before anything changes and broadcast
    nothing.
    """

    def __init__(
        self,
        catalog: QuestionSetCatalog | None = None,
        store: StateStore | None = None,
        suggester: NicknameSuggester | None = None,
        points_per_question: int = QUESTION_POINTS,
        projector: StateProjector | None = None,
    ) -> None:
        self._lock = Lock()

        # Services
        self._catalog = catalog or QuestionSetCatalog()
        self._roster = Roster(suggester)
        self._ledger = AnswerLedger()
        self._round = RoundStateMachine(self._roster, self._catalog, self._ledger, points_per_question)
        self._projector = projector or StateProjector()
        self._hub = BroadcastHub()

        self._writer: WriteBehindWriter | None = None
        if store is not None:
            self._rehydrate(store)
            self._writer = WriteBehindWriter(store)

    # --- Player operations ---

    def join(self, nickname: str, existing_id: str | None = None) -> Player:
        with self._lock:
            player = self._roster.register(nickname, existing_id)
            self._commit()
            return player

    def submit_answer(self, player_id: str, answer_index: int, nickname: str | None = None) -> SubmitOutcome:
        with self._lock:
            outcome = self._round.submit(player_id, answer_index, nickname)
            if outcome is SubmitOutcome.ACCEPTED:
                self._commit()
            return outcome

    def leave(self, player_id: str) -> bool:
        """Close the player's live connections; the roster entry and score stay."""
        with self._lock:
            removed = self._hub.disconnect_player(player_id)
            if removed:
                logger.info("Player %s left; connections closed", player_id)
                self._broadcast()
            return removed

    # --- Host operations ---

    def ask_custom(self, prompt: str, options: list[str]) -> Question:
        with self._lock:
            question = self._round.ask_custom(prompt, options)
            self._commit()
            return question

    def start_set(self, set_id: str) -> ActiveSet:
        with self._lock:
            active_set = self._round.start_set(set_id)
            self._commit()
            return active_set

    def advance_set(self) -> AdvanceResult:
        with self._lock:
            result = self._round.advance_set()
            self._commit()
            return result

    def reveal_manual(self, correct_index: int) -> int:
        with self._lock:
            revealed = self._round.reveal_manual(correct_index)
            self._commit()
            return revealed

    def reveal_set(self) -> int:
        with self._lock:
            revealed = self._round.reveal_set()
            self._commit()
            return revealed

    def reset(self) -> None:
        with self._lock:
            self._round.reset()
            self._commit()

    # --- Question set catalog ---

    def list_sets(self) -> list[QuestionSet]:
        with self._lock:
            return self._catalog.list()

    def replace_sets(self, sets: list[QuestionSet]) -> None:
        """Swap the catalog contents; an active set that disappears becomes unresolvable."""
        with self._lock:
            self._catalog.replace_all(sets)

    def remove_set(self, set_id: str) -> bool:
        with self._lock:
            return self._catalog.remove(set_id)

    # --- Read side ---

    def snapshot(self, viewer_id: str | None = None) -> Snapshot:
        with self._lock:
            return self._render(viewer_id)

    def get_player(self, player_id: str) -> Player | None:
        with self._lock:
            return self._roster.get(player_id)

    def players(self) -> list[Player]:
        with self._lock:
            return self._roster.players()

    def get_current_question(self) -> Question:
        with self._lock:
            return self._round.question

    def get_active_set(self) -> ActiveSet | None:
        with self._lock:
            return self._round.active_set

    def online_player_count(self) -> int:
        with self._lock:
            return len(self._hub.online_player_ids())

    # --- Push subscriptions ---

    def subscribe(self, player_id: str | None, loop: asyncio.AbstractEventLoop) -> Subscription:
        """Register a push connection and queue its first snapshot immediately."""
        subscription = Subscription(player_id, loop)
        with self._lock:
            if self._hub.add(subscription):
                # Online count changed for everyone, including the new connection.
                self._broadcast()
            elif self._hub.send(subscription, self._render(subscription.player_id)):
                self._broadcast()
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if self._hub.remove(subscription):
                self._broadcast()

    def close(self) -> None:
        with self._lock:
            self._hub.close_all()
        if self._writer is not None:
            self._writer.close()

    def flush_persistence(self, timeout: float | None = None) -> bool:
        if self._writer is None:
            return True
        return self._writer.flush(timeout)

    # --- Internals ---

    def _render(self, viewer_id: str | None) -> Snapshot:
        return self._projector.project(
            question=self._round.question,
            roster=self._roster,
            ledger=self._ledger,
            active_set=self._round.active_set,
            online_player_ids=self._hub.online_player_ids(),
            viewer_id=viewer_id,
        )

    def _broadcast(self) -> None:
        online = self._hub.online_player_ids()
        self._hub.broadcast(self._render)
        # Dead subscribers dropped during delivery can take a player offline.
        while self._hub.online_player_ids() != online:
            online = self._hub.online_player_ids()
            self._hub.broadcast(self._render)

    def _commit(self) -> None:
        if self._writer is not None:
            self._writer.submit(
                encode_state(
                    players=self._roster.players(),
                    question=self._round.question,
                    answers=self._ledger.answers(),
                    active_set=self._round.active_set,
                    set_answer_index=self._round.set_answer_index,
                )
            )
        self._broadcast()

    def _rehydrate(self, store: StateStore) -> None:
        try:
            blob = store.load()
        except Exception:
            logger.exception("Could not read persisted game state; starting fresh")
            return
        if blob is None:
            return
        try:
            restored = decode_state(blob)
        except (KeyError, TypeError, ValueError):
            logger.exception("Persisted game state is malformed; starting fresh")
            return
        self._roster.restore(restored.players)
        self._ledger.restore(restored.answers)
        self._round.restore(restored.question, restored.active_set, restored.set_answer_index)
        logger.info(
            "Rehydrated game state: %d player(s), question status %s",
            len(restored.players),
            restored.question.status.value,
        )
