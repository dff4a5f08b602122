"""
Printer driver interface.

A driver prints one receipt per call and holds no device between calls.
Calls block; the dispatcher runs them in a worker thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pos_agent.receipt import Receipt


class ReceiptPrinter(ABC):
    """Prints rendered receipts on one physical printer."""

    driver: str = ""

    @abstractmethod
    def print_receipt(self, receipt: Receipt) -> None:
        """
        Print ``receipt`` and release the device.

        Raises:
            PrinterError: Device missing, open failed or the job failed.
        """

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable target, e.g. ``usb 04b8:0202``."""
