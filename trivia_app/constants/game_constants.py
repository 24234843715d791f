"""Game rules shared across the core and server layers."""

import os
from pathlib import Path

QUESTION_POINTS: int = int(os.environ.get("QUESTION_POINTS", "10"))
MAX_NICKNAME_LENGTH: int = 24
DEFAULT_NICKNAME: str = "Player"
MIN_OPTIONS: int = 2
MAX_OPTIONS: int = 6
SUGGESTION_COUNT: int = 5

DEFAULT_SETS_DIR: Path = Path(
    os.environ.get("TRIVIA_SETS_DIR", Path(__file__).resolve().parent.parent.parent / "question_sets")
)
# Unset means the game state lives in memory only.
DEFAULT_STATE_FILE: Path | None = (
    Path(os.environ["TRIVIA_STATE_FILE"]) if os.environ.get("TRIVIA_STATE_FILE") else None
)
