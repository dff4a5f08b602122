"""
In-process event bus for the POS stream.

Maps theater id -> ordered set of subscribers and fans out PrintEvents.

Thread-safety: order mutations run in FastAPI's threadpool while streams run
on the event loop, so the registry is guarded by a threading.Lock. The lock
is held for the whole of a broadcast, which makes delivery FIFO per theater.
Subscribers only enqueue inside ``deliver`` so holding the lock stays cheap.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Protocol

from shared.config.logging import get_logger
from pos_stream.frames import PrintEvent

logger = get_logger(__name__)


class Subscriber(Protocol):
    """Anything the bus can deliver to."""

    def deliver(self, event: PrintEvent) -> None:
        """Queue ``event`` for the transport. Raise if it cannot be queued."""

    def close(self) -> None:
        """Ask the transport to finish."""


@dataclass(frozen=True, slots=True)
class SubscriptionTicket:
    """Returned by ``subscribe``; pass it back to ``unsubscribe``."""

    theater_id: str
    handle: Subscriber


class EventBus:
    """
    Best-effort, non-durable fan-out per theater.

    A subscriber registered after a broadcast does not receive it. A
    subscriber whose delivery raises is removed and closed; its siblings
    still get the event.
    """

    def __init__(self) -> None:
        # dict keeps insertion order and gives O(1) membership by identity
        self._subscribers: dict[str, dict[Subscriber, float]] = {}
        self._lock = threading.Lock()

        self._broadcasts = 0
        self._deliveries = 0
        self._dropped = 0
        self._started_at = time.time()

    @staticmethod
    def _key(theater_id: int | str) -> str:
        return str(theater_id)

    def subscribe(self, theater_id: int | str, handle: Subscriber) -> SubscriptionTicket:
        """Register ``handle`` for a theater. Idempotent per (theater, handle)."""
        key = self._key(theater_id)
        with self._lock:
            theater_set = self._subscribers.setdefault(key, {})
            if handle not in theater_set:
                theater_set[handle] = time.time()
                logger.info(
                    "Subscriber registered",
                    theater_id=key,
                    subscribers=len(theater_set),
                )
        return SubscriptionTicket(theater_id=key, handle=handle)

    def unsubscribe(self, ticket: SubscriptionTicket) -> bool:
        """Remove the ticket's handle. Returns False if it was already gone."""
        with self._lock:
            removed = self._remove_locked(ticket.theater_id, ticket.handle)
        if removed:
            logger.info("Subscriber removed", theater_id=ticket.theater_id)
        return removed

    def _remove_locked(self, key: str, handle: Subscriber) -> bool:
        theater_set = self._subscribers.get(key)
        if not theater_set or handle not in theater_set:
            return False
        del theater_set[handle]
        if not theater_set:
            del self._subscribers[key]
        return True

    def broadcast(self, theater_id: int | str, event: PrintEvent) -> int:
        """
        Deliver ``event`` to every current subscriber of the theater.

        Returns:
            Number of deliveries attempted (subscribers at broadcast time).
        """
        key = self._key(theater_id)
        failed: list[Subscriber] = []

        with self._lock:
            self._broadcasts += 1
            # Snapshot: failed handles are removed after the loop
            snapshot = list(self._subscribers.get(key, {}))

            for handle in snapshot:
                try:
                    handle.deliver(event)
                    self._deliveries += 1
                except Exception as e:
                    logger.warning(
                        "Delivery failed, dropping subscriber",
                        theater_id=key,
                        event_type=event.type,
                        error=str(e),
                    )
                    failed.append(handle)

            for handle in failed:
                if self._remove_locked(key, handle):
                    self._dropped += 1

        for handle in failed:
            handle.close()

        if not snapshot:
            logger.info(
                "No subscribers for event",
                theater_id=key,
                event_type=event.type,
                order_id=event.order_id,
            )
        else:
            logger.debug(
                "Event broadcast",
                theater_id=key,
                event_type=event.type,
                attempted=len(snapshot),
                failed=len(failed),
            )
        return len(snapshot)

    def subscriber_count(self, theater_id: int | str | None = None) -> int:
        with self._lock:
            if theater_id is None:
                return sum(len(s) for s in self._subscribers.values())
            return len(self._subscribers.get(self._key(theater_id), {}))

    def subscribers(self, theater_id: int | str) -> list[Subscriber]:
        """Snapshot of a theater's subscribers in registration order."""
        with self._lock:
            return list(self._subscribers.get(self._key(theater_id), {}))

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "theaters": len(self._subscribers),
                "subscribers": sum(len(s) for s in self._subscribers.values()),
                "broadcasts": self._broadcasts,
                "deliveries": self._deliveries,
                "dropped_subscribers": self._dropped,
                "uptime_seconds": round(time.time() - self._started_at, 1),
            }

    def close_all(self) -> int:
        """Close and forget every subscriber (process shutdown)."""
        with self._lock:
            handles = [h for s in self._subscribers.values() for h in s]
            self._subscribers.clear()
        for handle in handles:
            handle.close()
        if handles:
            logger.info("Closed all stream subscribers", count=len(handles))
        return len(handles)


_event_bus: EventBus | None = None
_event_bus_lock = threading.Lock()


def get_event_bus() -> EventBus:
    """Process-wide EventBus singleton."""
    global _event_bus
    if _event_bus is None:
        with _event_bus_lock:
            if _event_bus is None:
                _event_bus = EventBus()
    return _event_bus
