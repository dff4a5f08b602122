"""
ESC/POS printing over USB (python-escpos + pyusb).

The device is opened for one job and closed afterwards, so a printer that
is unplugged and plugged back in is picked up by the next receipt.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final

import usb.core
import usb.util
from escpos.printer import Usb

from pos_agent.errors import PrinterError
from pos_agent.printers.base import ReceiptPrinter
from pos_agent.receipt import Receipt
from shared.config.constants import PrinterDriver
from shared.config.logging import get_logger

logger = get_logger(__name__)

# USB interface class of printers
USB_PRINTER_CLASS: Final[int] = 7
CODE_PAGE: Final[str] = "CP437"


def find_escpos_device() -> tuple[int, int] | None:
    """Vendor/product id of the first USB device exposing a printer interface."""
    try:
        devices = list(usb.core.find(find_all=True))
    except usb.core.NoBackendError as e:
        raise PrinterError("No USB backend available (install libusb)") from e

    for dev in devices:
        try:
            for cfg in dev:
                if usb.util.find_descriptor(cfg, bInterfaceClass=USB_PRINTER_CLASS) is not None:
                    return dev.idVendor, dev.idProduct
        except usb.core.USBError:
            # Descriptor not readable (permissions); try the next device
            continue
    return None


def open_usb_printer(vendor_id: int, product_id: int) -> Usb:
    printer = Usb(vendor_id, product_id)
    printer.open()
    return printer


class UsbReceiptPrinter(ReceiptPrinter):
    """
    Receipt printer on a USB port.

    Args:
        vendor_id: USB vendor id, or None to auto-detect.
        product_id: USB product id, or None to auto-detect.
        device_factory: Opens the device given (vendor_id, product_id).
        finder: Locates a printer when ids are not configured.
    """

    driver = PrinterDriver.USB

    def __init__(
        self,
        vendor_id: int | None = None,
        product_id: int | None = None,
        device_factory: Callable[[int, int], Any] = open_usb_printer,
        finder: Callable[[], tuple[int, int] | None] = find_escpos_device,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._device_factory = device_factory
        self._finder = finder

    def describe(self) -> str:
        if self._vendor_id is not None and self._product_id is not None:
            return f"usb {self._vendor_id:04x}:{self._product_id:04x}"
        return "usb auto-detect"

    def _resolve_ids(self) -> tuple[int, int]:
        if self._vendor_id is not None and self._product_id is not None:
            return self._vendor_id, self._product_id
        found = self._finder()
        if found is None:
            raise PrinterError("No ESC/POS USB printer found")
        logger.debug("Auto-detected USB printer", vendor_id=f"{found[0]:04x}", product_id=f"{found[1]:04x}")
        return found

    def print_receipt(self, receipt: Receipt) -> None:
        vendor_id, product_id = self._resolve_ids()

        try:
            device = self._device_factory(vendor_id, product_id)
        except Exception as e:
            raise PrinterError(f"USB open error: {e}") from e

        try:
            device.charcode(CODE_PAGE)
            for line in receipt.lines:
                device.set(align=line.align)
                device.textln(line.text)
            device.cut()
        except Exception as e:
            raise PrinterError(f"ESC/POS USB print failed: {e}") from e
        finally:
            try:
                device.close()
            except Exception as e:
                logger.warning("Failed to close USB printer", error=str(e))
