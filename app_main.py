"""Application entry point for the live trivia server."""

from __future__ import annotations

import argparse
from pathlib import Path

from trivia_app.constants.game_constants import DEFAULT_SETS_DIR, DEFAULT_STATE_FILE
from trivia_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_app.core.game_manager import GameManager
from trivia_app.core.question_set_loader import load_question_sets
from trivia_app.core.services.question_set_catalog import QuestionSetCatalog
from trivia_app.core.services.state_store import JsonFileStateStore
from trivia_app.server.api_server import run_api_server
from trivia_app.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the live trivia server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--sets-dir", type=Path, default=DEFAULT_SETS_DIR, help="Directory of *.json question sets")
    parser.add_argument(
        "--state-file",
        type=Path,
        default=DEFAULT_STATE_FILE,
        help="Mirror game state to this JSON file and restore it on start",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging, load question sets and serve the API."""
    args = _parse_args(argv)
    logger = configure_logging()
    logger.info("Starting trivia server…")

    catalog = QuestionSetCatalog(load_question_sets(args.sets_dir))
    store = JsonFileStateStore(args.state_file) if args.state_file else None
    game_manager = GameManager(catalog=catalog, store=store)
    try:
        run_api_server(game_manager=game_manager, host=args.host, port=args.port)
    finally:
        game_manager.close()


if __name__ == "__main__":
    main()
