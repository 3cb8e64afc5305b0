# tests/conftest.py
from __future__ import annotations

import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# settings/engine은 import 시점에 만들어지므로 먼저 환경변수를 고정한다
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["DEV_LOGIN_PASSWORD"] = "letmein"
os.environ["DB_AUTO_CREATE"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from taskboard.backend.core.jwt import create_access_token  # noqa: E402
from taskboard.backend.db.session import create_all_tables, engine  # noqa: E402
from taskboard.backend.main import app  # noqa: E402
from taskboard.backend.services.task_service import TaskService  # noqa: E402
from taskboard.backend.services.task_store import TaskStore  # noqa: E402

from .fakes import RecordingEvents  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    SQLModel.metadata.drop_all(engine)
    create_all_tables()
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def db():
    with Session(engine) as s:
        yield s


@pytest.fixture()
def events() -> RecordingEvents:
    return RecordingEvents()


@pytest.fixture()
def service(db, events) -> TaskService:
    return TaskService(TaskStore(db), events=events)


@pytest.fixture()
def user_a() -> UUID:
    return uuid4()


@pytest.fixture()
def user_b() -> UUID:
    return uuid4()


def auth_headers(user_id: UUID) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c
