"""
Best-effort suppression of duplicate receipts.

A cash order that is created already paid produces a ``created`` event,
and a later payment verification may publish ``paid`` for the same order.
Order ids printed within the window are skipped. Two receipts for one order
remain a tolerable outcome, so the set lives in memory only.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable


class RecentPrints:
    """
    Time-bounded set of order ids that were printed successfully.

    Not thread-safe: each tenant worker owns one instance and uses it from
    its handler task only.
    """

    def __init__(
        self,
        window_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._printed: OrderedDict[str, float] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self._window > 0

    def __len__(self) -> int:
        self._prune()
        return len(self._printed)

    def _prune(self) -> None:
        cutoff = self._clock() - self._window
        while self._printed:
            order_id, printed_at = next(iter(self._printed.items()))
            if printed_at > cutoff:
                break
            self._printed.popitem(last=False)

    def seen(self, order_id: str | int) -> bool:
        """True if the order was printed inside the window."""
        if not self.enabled:
            return False
        self._prune()
        return str(order_id) in self._printed

    def mark(self, order_id: str | int) -> None:
        """Record a successful print."""
        if not self.enabled:
            return
        key = str(order_id)
        self._printed.pop(key, None)
        self._printed[key] = self._clock()
        self._prune()
