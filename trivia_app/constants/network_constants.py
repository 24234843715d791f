"""Network configuration constants for the trivia server."""

import os

DEFAULT_HOST: str = os.environ.get("TRIVIA_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.environ.get("TRIVIA_PORT", "4000"))
# Seconds between SSE comment frames sent to keep idle proxies from closing the stream.
SSE_KEEPALIVE_SECONDS: float = float(os.environ.get("SSE_KEEPALIVE_SECONDS", "15"))
