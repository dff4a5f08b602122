"""
Seed data for development and demos.
Creates one theater with an admin, a counter (POS) user used by the print
agent, a super admin, and a printer configuration.

Idempotent: does nothing if any theater exists.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import PrinterDriver, Roles
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password
from rest_api.models import PosPrinterSetting, Theater, User

logger = get_logger(__name__)

DEMO_THEATER_NAME = "Demo Cinema"
DEMO_THEATER_SLUG = "demo-cinema"

# Development credentials only; validate_production_secrets() refuses
# SEED_DEMO_DATA in production
DEMO_USERS = (
    ("superadmin", "superadmin123", Roles.SUPER_ADMIN, False),
    ("demo-admin", "admin123", Roles.THEATER_ADMIN, True),
    ("demo-counter", "counter123", Roles.POS_USER, True),
)


def seed(db: Session) -> Theater | None:
    """Insert demo data into an empty database. Returns the demo theater."""
    if db.scalar(select(Theater.id).limit(1)) is not None:
        logger.info("Database already seeded, skipping")
        return None

    theater = Theater(name=DEMO_THEATER_NAME, slug=DEMO_THEATER_SLUG)
    db.add(theater)
    db.flush()

    for username, password, role, scoped in DEMO_USERS:
        db.add(
            User(
                username=username,
                password=hash_password(password),
                role=role,
                theater_id=theater.id if scoped else None,
                display_name=username.replace("-", " ").title(),
            )
        )

    db.add(PosPrinterSetting(theater_id=theater.id, driver=PrinterDriver.USB, printer_name=""))
    safe_commit(db)

    logger.info("Demo data seeded", theater_id=theater.id, users=len(DEMO_USERS))
    return theater
