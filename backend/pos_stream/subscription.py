"""
Subscription handle for one open event stream.
"""

from __future__ import annotations

import asyncio
import threading
import time
import uuid
from typing import Any

from pos_stream.constants import StreamConstants
from pos_stream.frames import PrintEvent


class DeliveryError(Exception):
    """A frame could not be queued for the subscriber."""


class SlowConsumerError(DeliveryError):
    """Too many frames are waiting to be written."""


class SubscriberClosedError(DeliveryError):
    """The stream has already finished."""


# Queued by close() to wake the reader
_CLOSED = object()


class StreamSubscriber:
    """
    Bridges EventBus deliveries (any thread) to one streaming response
    (its event loop).

    ``deliver`` never blocks: it schedules ``put_nowait`` on the owning loop
    through ``call_soon_threadsafe``. Callbacks run in scheduling order, so
    per-theater FIFO from the bus carries over to the queue.
    """

    def __init__(
        self,
        theater_id: int | str,
        subject: str | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        max_pending: int = StreamConstants.MAX_PENDING_EVENTS,
    ) -> None:
        self.id = uuid.uuid4().hex[:12]
        self.theater_id = str(theater_id)
        self.subject = subject
        self.max_pending = max_pending
        self.created_at = time.time()
        self.last_keepalive_at: float | None = None
        self.delivered = 0

        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._pending = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._pending

    def deliver(self, event: PrintEvent) -> None:
        """
        Queue ``event``. Thread-safe.

        Raises:
            SubscriberClosedError: stream finished or its loop is gone.
            SlowConsumerError: ``max_pending`` frames are still unwritten.
        """
        with self._lock:
            if self._closed:
                raise SubscriberClosedError(f"subscriber {self.id} is closed")
            if self._pending >= self.max_pending:
                raise SlowConsumerError(
                    f"subscriber {self.id} has {self._pending} undelivered frames"
                )
            self._pending += 1
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError as e:
            with self._lock:
                self._pending -= 1
                self._closed = True
            raise SubscriberClosedError(f"event loop of subscriber {self.id} is closed") from e

    async def next_event(self, timeout: float | None = None) -> PrintEvent | None:
        """
        Wait for the next frame.

        Returns:
            The frame, or None once the subscriber has been closed.

        Raises:
            asyncio.TimeoutError: nothing arrived within ``timeout``.
        """
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            return None
        with self._lock:
            self._pending -= 1
        self.delivered += 1
        return item

    def close(self) -> None:
        """Finish the stream. Idempotent and thread-safe."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)

    def mark_keepalive(self) -> None:
        self.last_keepalive_at = time.time()

    def snapshot(self) -> dict[str, Any]:
        """Status view; never includes the token."""
        return {
            "id": self.id,
            "theaterId": self.theater_id,
            "subject": self.subject,
            "connectedAt": self.created_at,
            "lastKeepaliveAt": self.last_keepalive_at,
            "delivered": self.delivered,
            "pending": self._pending,
        }

    def __repr__(self) -> str:
        return f"<StreamSubscriber(id={self.id}, theater_id={self.theater_id}, closed={self._closed})>"
