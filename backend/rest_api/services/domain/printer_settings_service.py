"""
Printer settings Domain Service.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import PrinterDriver
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.schemas import PrinterConfig, PrinterConfigUpdate
from rest_api.models import PosPrinterSetting, Theater

logger = get_logger(__name__)


class PrinterSettingsService:
    """
    Reads and writes the per-theater receipt printer configuration.
    Theaters without a row get ``PrinterConfig()`` defaults (usb, auto-detect).
    """

    def __init__(self, db: Session):
        self._db = db

    def _get_row(self, theater_id: int) -> PosPrinterSetting | None:
        return self._db.scalar(
            select(PosPrinterSetting).where(PosPrinterSetting.theater_id == theater_id)
        )

    def get_config(self, theater_id: int) -> PrinterConfig:
        row = self._get_row(theater_id)
        if row is None:
            return PrinterConfig()
        return PrinterConfig(
            driver=row.driver,
            usb_vendor_id=row.usb_vendor_id,
            usb_product_id=row.usb_product_id,
            printer_name=row.printer_name or "",
        )

    def save_config(
        self,
        theater_id: int,
        update: PrinterConfigUpdate,
        actor: dict[str, Any] | None = None,
    ) -> PrinterConfig:
        """
        Merge ``update`` into the stored configuration.

        Raises:
            NotFoundError: theater does not exist.
            ValidationError: only one of vendor/product id is set for USB.
        """
        if self._db.get(Theater, theater_id) is None:
            raise NotFoundError("Theater", theater_id)

        current = self.get_config(theater_id).model_dump()
        changes = update.model_dump(include=update.model_fields_set)
        if changes.get("printer_name") is None and "printer_name" in changes:
            changes["printer_name"] = ""
        if changes.get("driver") is None:
            changes.pop("driver", None)
        merged = PrinterConfig(**{**current, **changes})

        if merged.driver == PrinterDriver.USB and (
            (merged.usb_vendor_id is None) != (merged.usb_product_id is None)
        ):
            raise ValidationError(
                "USB vendor id and product id must be set together",
                theater_id=theater_id,
            )

        row = self._get_row(theater_id)
        if row is None:
            row = PosPrinterSetting(theater_id=theater_id)
            if actor:
                row.set_created_by(int(actor["sub"]), actor.get("username"))
            self._db.add(row)
        elif actor:
            row.set_updated_by(int(actor["sub"]), actor.get("username"))

        row.driver = merged.driver
        row.usb_vendor_id = merged.usb_vendor_id
        row.usb_product_id = merged.usb_product_id
        row.printer_name = merged.printer_name
        safe_commit(self._db)

        logger.info(
            "Printer settings saved",
            theater_id=theater_id,
            driver=merged.driver,
            printer_name=merged.printer_name or None,
        )
        return merged
