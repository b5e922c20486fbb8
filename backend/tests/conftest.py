import os
import sys
import time
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Must be set before app.core.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("PASSWORD_SCRYPT_ROUNDS", "4")

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db import session as session_module
from app.main import create_app
from app.models.user import UserRole
from app.services.credentials import UserRepository

# Import models so that they are registered in Base.metadata before create_all.
from app.models.user import User  # noqa: F401
from app.models.quiz import Quiz  # noqa: F401
from app.models.attempt import QuizAttempt  # noqa: F401
from app.models.security_audit import SecurityAuditEvent  # noqa: F401


class MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def set(self, key: str, value: str, ex: int | None = None, nx: bool = False, xx: bool = False):
        present = self._get_entry(key) is not None
        if (nx and present) or (xx and not present):
            return None
        exp = (self._now() + int(ex)) if ex else None
        self._data[key] = (value, exp)
        return True

    def delete(self, key: str):
        if self._get_entry(key) is None:
            return 0
        self._data.pop(key, None)
        return 1

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [k for k in list(self._data) if k.startswith(prefix)]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


# Configure test DB (SQLite in-memory) at import time so all tests importing
# app.db.session.SessionLocal will get the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (rate limiting + quiz sessions).
_mem_redis = MemoryRedis()
import app.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import app.core.rate_limit as rate_limit_module
rate_limit_module.get_redis = lambda: _mem_redis

import app.routers.quizzes as quizzes_router_module
quizzes_router_module.get_redis = lambda: _mem_redis

import app.routers.health as health_router_module
health_router_module.get_redis = lambda: _mem_redis


PASSWORD = "testpass123"


@pytest.fixture(scope="session")
def client():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    for key in _mem_redis.keys_with_prefix("rl:"):
        _mem_redis.delete(key)
    yield


@pytest.fixture()
def redis_stub():
    return _mem_redis


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def clock():
    return FakeClock()


def _create_user(*, role: UserRole) -> tuple[int, str]:
    username = f"{role.value}_{uuid.uuid4().hex[:8]}"
    with session_module.SessionLocal() as db:
        user = UserRepository(db).create(username=username, password=PASSWORD, role=role, display_name=username.title())
        db.commit()
        return user.id, username


def _auth_headers_for_user(client, *, username: str, password: str = PASSWORD) -> dict[str, str]:
    r = client.post(
        "/auth/token",
        data={"username": username, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert r.status_code == 200
    token = r.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(client):
    """Factory returning (user_id, username, auth headers) for a fresh user of the given role."""

    def _make(role: UserRole = UserRole.student):
        user_id, username = _create_user(role=role)
        return user_id, username, _auth_headers_for_user(client, username=username)

    return _make


@pytest.fixture()
def teacher(make_user):
    return make_user(UserRole.teacher)


@pytest.fixture()
def student(make_user):
    return make_user(UserRole.student)


@pytest.fixture()
def teacher_headers(teacher):
    return teacher[2]


@pytest.fixture()
def student_headers(student):
    return student[2]


def quiz_payload(**overrides) -> dict:
    payload = {
        "title": "Primary colours",
        "description": "Three quick questions",
        "subject": "Art",
        "time_limit": 60,
        "questions": [
            {"text": "Q1", "options": ["a", "b", "c"], "correct_answer": 0},
            {"text": "Q2", "options": ["a", "b", "c"], "correct_answer": 1},
            {"text": "Q3", "options": ["a", "b", "c"], "correct_answer": 2},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def quiz(client, teacher_headers):
    r = client.post("/quizzes", json=quiz_payload(), headers=teacher_headers)
    assert r.status_code == 201
    return r.json()
