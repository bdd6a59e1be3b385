import os
import tempfile
from pathlib import Path

# Point the API at a throwaway database before anything imports api.config.
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="oral-exam-tests-"))
os.environ["DB_DIR"] = str(_TMP_ROOT)
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_ROOT / 'test.db'}"
os.environ["AUDIO_DIR"] = str(_TMP_ROOT / "audio")
os.environ["RECEIPTS_DIR"] = str(_TMP_ROOT / "receipts")
os.environ["SECTION_IMAGES_DIR"] = str(_TMP_ROOT / "section_images")
os.environ["SECRET_KEY"] = "test-secret"

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

import api.models.db  # noqa: F401
from api.app import app
from api.database import Base, SessionLocal, engine
from api.models.db.user import UserRole
from api.services.auth_service import create_user, issue_token
from exam_runner.notifications import Notifier
from helpers import FakeAudioInput


# API fixtures


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session) -> TestClient:
    # No context manager: startup events (cleanup thread) are not needed here.
    return TestClient(app)


@pytest.fixture
def make_user(db_session) -> Callable[..., dict[str, Any]]:
    """Create a user and return its id and bearer headers."""
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.STUDENT, username: str | None = None) -> dict[str, Any]:
        counter["n"] += 1
        name = username or f"{role.value}{counter['n']}"
        user = create_user(db_session, name, f"{name}@example.com", "secret123", role=role)
        token = issue_token(db_session, user)
        return {
            "id": user.id,
            "username": name,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


# Runner fixtures


@pytest.fixture
def audio_input() -> FakeAudioInput:
    return FakeAudioInput()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()
