"""Pytest configuration for the relay test suite."""

import os
import tempfile
from pathlib import Path

# Must be set before relay.infra.postgres builds its engine
_DB_DIR = Path(tempfile.mkdtemp(prefix="relay-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'relay.db'}"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from relay.infra.postgres import Base, SessionLocal, engine  # noqa: E402
from relay.main import app  # noqa: E402
from relay.models.participant import Participant  # noqa: E402,F401
from relay.models.record import Record  # noqa: E402

SENDER = "1111111111111111"
RECIPIENT = "2222222222222222"


@pytest.fixture(autouse=True)
def schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """A session on the test database."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    """HTTP client without lifespan; tables come from the schema fixture."""
    return TestClient(app)


def add_record(
    session,
    sender: str = SENDER,
    recipient: str = RECIPIENT,
    instant: datetime = datetime(2024, 2, 15, 9, 0, 0),
    envelope: str = "not-an-envelope",
    record_id: int | None = None,
) -> Record:
    """Insert a record directly, bypassing sealing."""
    record = Record(
        sender=sender,
        recipient=recipient,
        envelope=envelope,
        padding="",
        instant=instant,
    )
    if record_id is not None:
        record.id = record_id
    session.add(record)
    session.commit()
    return record
