"""FastAPI server that exposes host, player and push endpoints."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
import uvicorn

from trivia_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, SSE_KEEPALIVE_SECONDS
from trivia_app.core.errors import GameError
from trivia_app.core.game_manager import GameManager
from trivia_app.core.services.answer_ledger import SubmitOutcome
from trivia_app.core.services.state_projector import StateProjector

logger = logging.getLogger(__name__)


class JoinPayload(BaseModel):
    """Payload schema for joining or re-joining the game."""

    nickname: str = ""
    player_id: str | None = None


class QuestionPayload(BaseModel):
    """Payload schema for a host-written question."""

    prompt: str = ""
    options: list[str] = Field(default_factory=list)


class StartSetPayload(BaseModel):
    set_id: str = ""


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    player_id: str = ""
    answer_index: int | None = None
    nickname: str | None = None


class RevealPayload(BaseModel):
    correct_index: int | None = None


class LeavePayload(BaseModel):
    player_id: str = ""


def format_sse_event(event: str, payload: object) -> str:
    """Encode one server-sent event frame."""
    return f"event: {event}\ndata: {json.dumps(payload, separators=(',', ':'))}\n\n"


def _to_http_exception(exc: GameError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


def _get_game_manager_dependency(game_manager: GameManager):
    def dependency() -> GameManager:
        return game_manager

    return dependency


def create_api_app(game_manager: GameManager, keepalive_seconds: float = SSE_KEEPALIVE_SECONDS) -> FastAPI:
    """Create a FastAPI application wired to the provided game manager."""
    app = FastAPI(title="Trivia API", version="0.1.0")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    game_manager_dep = _get_game_manager_dependency(game_manager)

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"ok": True}

    @app.get("/state")
    def get_state(
        player_id: str | None = None,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        return manager.snapshot(player_id)

    @app.get("/events")
    async def stream_events(
        request: Request,
        player_id: str | None = None,
        manager: GameManager = Depends(game_manager_dep),
    ) -> StreamingResponse:
        async def event_stream():
            # The manager lock can be held while a broadcast renders; keep it off the event loop.
            subscription = await run_in_threadpool(manager.subscribe, player_id, asyncio.get_running_loop())
            try:
                while not subscription.closed:
                    if await request.is_disconnected():
                        break
                    snapshot = await subscription.receive(timeout=keepalive_seconds)
                    if snapshot is not None:
                        yield format_sse_event("state", snapshot)
                    elif not subscription.closed:
                        yield ": keepalive\n\n"
            finally:
                await run_in_threadpool(manager.unsubscribe, subscription)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.post("/join", status_code=201)
    def join_game(
        payload: JoinPayload,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        try:
            player = manager.join(payload.nickname, payload.player_id or None)
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        return {
            "player_id": player.id,
            "nickname": player.nickname,
            "state": manager.snapshot(player.id),
        }

    @app.post("/question", status_code=201)
    def ask_question(
        payload: QuestionPayload,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        try:
            question = manager.ask_custom(payload.prompt, payload.options)
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        return {"question_id": question.id}

    @app.get("/sets")
    def list_sets(manager: GameManager = Depends(game_manager_dep)) -> dict[str, object]:
        # Correct indices stay server-side.
        return {
            "sets": [
                {
                    "id": question_set.id,
                    "name": question_set.name,
                    "total": question_set.total,
                    "questions": [
                        {"prompt": q.prompt, "options": list(q.options)} for q in question_set.questions
                    ],
                }
                for question_set in manager.list_sets()
            ]
        }

    @app.post("/sets/start")
    def start_set(
        payload: StartSetPayload,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        try:
            active_set = manager.start_set(payload.set_id)
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        return {"active_set": StateProjector.active_set_view(active_set)}

    @app.post("/sets/next", status_code=201)
    def advance_set(manager: GameManager = Depends(game_manager_dep)) -> dict[str, object]:
        try:
            result = manager.advance_set()
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        return {
            "question_id": result.question_id,
            "set_id": result.set_id,
            "index": result.index,
            "remaining": result.remaining,
        }

    @app.post("/answer")
    def submit_answer(
        payload: AnswerPayload,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        try:
            outcome = manager.submit_answer(payload.player_id, payload.answer_index, payload.nickname)
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        if outcome is SubmitOutcome.DUPLICATE:
            return {"accepted": True, "duplicate": True}
        return {"accepted": True}

    @app.post("/reveal")
    def reveal_answer(
        payload: RevealPayload,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        try:
            correct_index = manager.reveal_manual(payload.correct_index)
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        return {"revealed": True, "correct_index": correct_index}

    @app.post("/sets/reveal")
    def reveal_set_answer(manager: GameManager = Depends(game_manager_dep)) -> dict[str, object]:
        try:
            correct_index = manager.reveal_set()
        except GameError as exc:
            raise _to_http_exception(exc) from exc
        return {"revealed": True, "correct_index": correct_index}

    @app.post("/leave")
    def leave_game(
        payload: LeavePayload,
        manager: GameManager = Depends(game_manager_dep),
    ) -> dict[str, object]:
        return {"removed": manager.leave(payload.player_id)}

    @app.post("/reset")
    def reset_game(manager: GameManager = Depends(game_manager_dep)) -> dict[str, object]:
        manager.reset()
        return {"cleared": True}

    return app


def run_api_server(
    game_manager: GameManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(game_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    logger.info("Trivia server listening on http://%s:%d", host, port)
    server.run()
