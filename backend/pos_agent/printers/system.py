"""
Printing through the operating system spooler.

The plain-text receipt is written to a temporary file and handed to
``lp`` (CUPS) or, on Windows, to Notepad's print verbs. The file is removed
whether or not the spooler accepted it.
"""

from __future__ import annotations

import os
import subprocess
import sys
import tempfile
from collections.abc import Callable
from typing import Any

from pos_agent.errors import PrinterError
from pos_agent.printers.base import ReceiptPrinter
from pos_agent.receipt import Receipt
from shared.config.constants import PrinterDriver
from shared.config.logging import get_logger

logger = get_logger(__name__)


class SystemSpoolerPrinter(ReceiptPrinter):
    """Receipt printer installed in the OS (default or named)."""

    driver = PrinterDriver.SYSTEM

    def __init__(
        self,
        printer_name: str = "",
        timeout: float = 30.0,
        runner: Callable[..., Any] = subprocess.run,
        platform: str = sys.platform,
    ) -> None:
        self._printer_name = printer_name.strip()
        self._timeout = timeout
        self._runner = runner
        self._platform = platform

    def describe(self) -> str:
        return f"system {self._printer_name or '<default>'}"

    def build_command(self, path: str) -> list[str]:
        if self._platform == "win32":
            if self._printer_name:
                return ["notepad.exe", "/pt", path, self._printer_name]
            return ["notepad.exe", "/p", path]
        command = ["lp"]
        if self._printer_name:
            command += ["-d", self._printer_name]
        command.append(path)
        return command

    def print_receipt(self, receipt: Receipt) -> None:
        fd, path = tempfile.mkstemp(prefix="receipt-", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(receipt.to_text())

            command = self.build_command(path)
            try:
                result = self._runner(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self._timeout,
                    check=False,
                )
            except (OSError, subprocess.SubprocessError) as e:
                raise PrinterError(f"System print failed: {e}") from e

            if result.returncode != 0:
                detail = (result.stderr or result.stdout or "").strip()
                raise PrinterError(
                    f"System print failed with exit code {result.returncode}: {detail}"
                )
            logger.debug("Receipt spooled", printer=self.describe(), order_number=receipt.order_number)
        finally:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
