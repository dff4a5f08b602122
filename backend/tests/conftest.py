"""
Pytest configuration and fixtures for backend and print agent tests.
"""

import os

# Settings are read at import time; point them at SQLite before any app import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import pos_stream.event_bus as event_bus_module
from pos_stream.event_bus import EventBus
from rest_api.main import app
from rest_api.models import Base, PosPrinterSetting, Theater, User
from shared.config.constants import PrinterDriver, Roles
from shared.infrastructure.db import get_db
from shared.security.auth import sign_user_token
from shared.security.password import hash_password
from shared.security.rate_limit import login_attempts
from tests.fakes import RecordingSubscriber


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)

# Cheap hashes keep the suite fast
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    login_attempts.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def event_bus(monkeypatch):
    """Fresh process-wide EventBus, so tests never see each other's subscribers."""
    bus = EventBus()
    monkeypatch.setattr(event_bus_module, "_event_bus", bus)
    return bus


@pytest.fixture
def recorder(event_bus, seed_theater):
    """A subscriber of the seeded theater on the fresh bus."""
    subscriber = RecordingSubscriber()
    event_bus.subscribe(seed_theater.id, subscriber)
    return subscriber


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_theater(db_session):
    """Create a test theater."""
    theater = Theater(name="Test Cinema", slug="test-cinema")
    db_session.add(theater)
    db_session.commit()
    db_session.refresh(theater)
    return theater


@pytest.fixture
def other_theater(db_session):
    """A second tenant."""
    theater = Theater(name="Other Cinema", slug="other-cinema")
    db_session.add(theater)
    db_session.commit()
    db_session.refresh(theater)
    return theater


def _create_user(db_session, username, password, role, theater_id):
    user = User(
        username=username,
        password=hash_password(password, rounds=TEST_BCRYPT_ROUNDS),
        role=role,
        theater_id=theater_id,
        display_name=username.title(),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def seed_admin_user(db_session, seed_theater):
    """Theater admin of the seeded theater."""
    return _create_user(db_session, "admin", "adminpass", Roles.THEATER_ADMIN, seed_theater.id)


@pytest.fixture
def seed_counter_user(db_session, seed_theater):
    """POS counter account, the one print agents log in with."""
    return _create_user(db_session, "counter", "counterpass", Roles.POS_USER, seed_theater.id)


@pytest.fixture
def seed_super_admin(db_session):
    """Super admin, not scoped to any theater."""
    return _create_user(db_session, "root", "rootpass", Roles.SUPER_ADMIN, None)


@pytest.fixture
def seed_other_counter(db_session, other_theater):
    """POS account of the second theater."""
    return _create_user(db_session, "other-counter", "otherpass", Roles.POS_USER, other_theater.id)


@pytest.fixture
def seed_printer_setting(db_session, seed_theater):
    setting = PosPrinterSetting(
        theater_id=seed_theater.id,
        driver=PrinterDriver.SYSTEM,
        printer_name="Counter Printer",
    )
    db_session.add(setting)
    db_session.commit()
    return setting


# =============================================================================
# Auth headers
# =============================================================================


def bearer(user) -> dict:
    token = sign_user_token(user.id, user.username, user.role, user.theater_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(seed_admin_user):
    return bearer(seed_admin_user)


@pytest.fixture
def counter_headers(seed_counter_user):
    return bearer(seed_counter_user)


@pytest.fixture
def super_headers(seed_super_admin):
    return bearer(seed_super_admin)


@pytest.fixture
def other_headers(seed_other_counter):
    return bearer(seed_other_counter)


# =============================================================================
# Order payloads
# =============================================================================


@pytest.fixture
def cash_order_payload():
    """Cash order settled at the counter (prints on creation)."""
    return {
        "source": "pos",
        "items": [{"productName": "Popcorn", "quantity": 2, "unitPrice": 100}],
        "payment": {"method": "cash", "status": "completed"},
    }


@pytest.fixture
def qr_order_payload():
    """QR order awaiting online payment (prints once paid)."""
    return {
        "source": "qr_code",
        "items": [
            {"productName": "Cola", "quantity": 1, "unitPrice": 80, "size": "Large"},
            {"productName": "Nachos", "quantity": 1, "unitPrice": 120},
        ],
        "payment": {"method": "upi", "status": "pending"},
        "customerName": "Seat F12",
    }
