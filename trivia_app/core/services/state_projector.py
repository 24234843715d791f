"""Builds the viewer-personalized snapshot pushed to clients."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timezone

from trivia_app.core.markdown_renderer import MarkdownRenderer, renderer as default_renderer
from trivia_app.core.models import ActiveSet, Answer, Player, Question, QuestionStatus
from trivia_app.core.services.answer_ledger import AnswerLedger
from trivia_app.core.services.roster import Roster


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()


class StateProjector:
    """Pure projection of game state; calling it never mutates anything."""

    def __init__(self, markdown: MarkdownRenderer | None = None) -> None:
        self._markdown = markdown or default_renderer

    def project(
        self,
        question: Question,
        roster: Roster,
        ledger: AnswerLedger,
        active_set: ActiveSet | None,
        online_player_ids: Collection[str],
        viewer_id: str | None = None,
    ) -> dict[str, object]:
        players = roster.players()
        revealed = question.status is QuestionStatus.REVEALED
        return {
            "question": self.question_view(question),
            "leaderboard": self.leaderboard(players),
            "zero_score_count": sum(1 for player in players if player.score == 0),
            "answer_counts": [] if question.status is QuestionStatus.IDLE else ledger.counts(len(question.options)),
            "answers": [self._revealed_answer(answer, roster) for answer in ledger.answers()] if revealed else [],
            "self_answer": self._answer_view(ledger.get(viewer_id)),
            "players_online": len(online_player_ids),
            "active_set": self.active_set_view(active_set),
        }

    def question_view(self, question: Question) -> dict[str, object]:
        source = question.source_set
        return {
            "id": question.id,
            "prompt": question.prompt,
            "prompt_html": self._markdown.render_fragment(question.prompt),
            "options": list(question.options),
            "status": question.status.value,
            # Only send the correct answer once the host has revealed it
            "correct_index": question.correct_index if question.status is QuestionStatus.REVEALED else None,
            "created_at": _iso(question.created_at),
            "set_id": source.set_id if source else None,
            "set_name": source.set_name if source else None,
            "set_question_index": source.index_within_set if source else None,
        }

    @staticmethod
    def leaderboard(players: list[Player]) -> list[dict[str, object]]:
        # sorted() is stable, so equal scores keep join order
        ranked = sorted((p for p in players if p.score > 0), key=lambda p: -p.score)
        return [{"id": p.id, "nickname": p.nickname, "score": p.score} for p in ranked]

    @staticmethod
    def active_set_view(active_set: ActiveSet | None) -> dict[str, object] | None:
        if active_set is None:
            return None
        return {
            "id": active_set.set_id,
            "name": active_set.name,
            "index": active_set.index,
            "total": active_set.total,
        }

    @staticmethod
    def _answer_view(answer: Answer | None) -> dict[str, object] | None:
        if answer is None:
            return None
        return {
            "answer_index": answer.answer_index,
            "answered_at": _iso(answer.answered_at),
            "correct": answer.correct,
        }

    @staticmethod
    def _revealed_answer(answer: Answer, roster: Roster) -> dict[str, object]:
        return {
            "player_id": answer.player_id,
            "nickname": roster.nickname_for(answer.player_id),
            "answer_index": answer.answer_index,
            "correct": answer.correct,
            "answered_at": _iso(answer.answered_at),
        }
