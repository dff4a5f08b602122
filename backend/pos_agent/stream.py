"""
Server-Sent Events parsing for the POS stream.

Keep-alives may arrive as ``: comment`` lines or as
``{"type":"keepalive"}`` frames; both are tolerated. Frames that are not
JSON objects are dropped with a warning.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from shared.config.constants import StreamFrameType
from shared.config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SSEMessage:
    data: str
    event: str = "message"
    id: str | None = None


class SSEParser:
    """
    Incremental line-oriented SSE parser.

    Feed it one line at a time (without the line terminator); a message is
    returned when a blank line closes it.
    """

    def __init__(self) -> None:
        self._data: list[str] = []
        self._event = ""
        self._id: str | None = None

    def feed_line(self, line: str) -> SSEMessage | None:
        line = line.rstrip("\r\n")

        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            self._id = value
        # "retry" and unknown fields are ignored
        return None

    def _dispatch(self) -> SSEMessage | None:
        if not self._data:
            self._event = ""
            return None
        message = SSEMessage(
            data="\n".join(self._data),
            event=self._event or "message",
            id=self._id,
        )
        self._data = []
        self._event = ""
        return message


def parse_frame(data: str) -> dict[str, Any] | None:
    """Decode a frame payload. None for anything that is not a JSON object."""
    try:
        frame = json.loads(data)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Dropping non-JSON stream frame", size=len(data or ""))
        return None
    if not isinstance(frame, dict):
        logger.warning("Dropping stream frame that is not an object")
        return None
    return frame


def is_keepalive(frame: dict[str, Any]) -> bool:
    return frame.get("type") == StreamFrameType.KEEPALIVE
