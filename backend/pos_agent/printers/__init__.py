"""
Receipt printer drivers selected by ``PrinterConfig.driver``.
"""

from pos_agent.config import AgentSettings, get_agent_settings
from pos_agent.printers.base import ReceiptPrinter
from pos_agent.printers.system import SystemSpoolerPrinter
from pos_agent.printers.usb import UsbReceiptPrinter
from shared.config.constants import PrinterDriver
from shared.utils.schemas import PrinterConfig


def create_printer(
    config: PrinterConfig,
    settings: AgentSettings | None = None,
) -> ReceiptPrinter:
    """Build the driver for a theater's printer configuration."""
    settings = settings or get_agent_settings()
    if config.driver == PrinterDriver.SYSTEM:
        return SystemSpoolerPrinter(
            printer_name=config.printer_name,
            timeout=settings.spooler_timeout,
        )
    return UsbReceiptPrinter(
        vendor_id=config.usb_vendor_id,
        product_id=config.usb_product_id,
    )


__all__ = [
    "ReceiptPrinter",
    "SystemSpoolerPrinter",
    "UsbReceiptPrinter",
    "create_printer",
]
