"""
POS stream constants.
"""

from typing import Final

__all__ = ["StreamConstants", "SSE_HEADERS", "SSE_MEDIA_TYPE"]


class StreamConstants:
    """
    Operational defaults of the event stream.

    Runtime values come from ``shared.config.settings`` (POS_STREAM_* env
    vars); these are the fallbacks used when an endpoint is built directly.
    """

    # Below the 30s idle timeout of common reverse proxies
    KEEPALIVE_INTERVAL: Final[float] = 25.0

    # Bound on token verification before the stream opens
    AUTH_TIMEOUT: Final[float] = 5.0

    # Undelivered frames before a subscriber counts as a slow consumer
    MAX_PENDING_EVENTS: Final[int] = 100


SSE_MEDIA_TYPE: Final[str] = "text/event-stream"

# Agents connect from arbitrary networks, hence the wildcard origin
SSE_HEADERS: Final[dict[str, str]] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "Access-Control-Allow-Origin": "*",
}
