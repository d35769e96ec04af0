"""Shared pytest fixtures.

- Environment is set BEFORE cleanbook.config is imported
- Every test gets its own SQLite file under tmp_path
- Redis is replaced by an in-memory FakeRedis (or None where a test says so)
"""

import fnmatch
import json
import os
import tempfile
from datetime import date, datetime, timedelta

import pytest

os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "cleanbook_test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6399/15")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from cleanbook.config import settings  # noqa: E402
from cleanbook.database import enable_sqlite_fk, get_db  # noqa: E402
from cleanbook.main import app  # noqa: E402
from cleanbook.models.generated import (  # noqa: E402
    Base,
    CompanySettings,
    ServiceFrequencies,
    ServiceOptions,
    Services,
)
from cleanbook.redis_client import get_redis  # noqa: E402


ADMIN_TOKEN = "test-admin-token"

# 2030-06-03 is a Monday
MONDAY = date(2030, 6, 3)
SATURDAY = date(2030, 6, 8)
NOW = datetime(2030, 6, 1, 9, 0)  # naive → business time zone


# ============================================================================
# FAKE REDIS
# ============================================================================


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self.redis = redis
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        results = [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.calls]
        self.calls = []
        return results


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for the app."""

    def __init__(self):
        self.data: dict = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        value = self.data.get(key)
        return value.decode() if isinstance(value, bytes) else value

    def set(self, key, value, ex=None):
        self.data[key] = value.decode() if isinstance(value, bytes) else value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.ttls[key] = seconds
        return True

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.ttls.get(key, -1)

    def incr(self, key):
        self.data[key] = int(self.data.get(key, 0)) + 1
        return self.data[key]

    def delete(self, *keys):
        count = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                count += 1
        return count

    def scan_iter(self, match="*"):
        return [key for key in list(self.data) if fnmatch.fnmatchcase(key, match)]

    def rpush(self, key, *values):
        self.data.setdefault(key, []).extend(values)
        return len(self.data[key])

    def events(self, queue="events:p2p") -> list[dict]:
        return [json.loads(v) for v in self.data.get(queue, [])]

    def pipeline(self):
        return FakePipeline(self)

    def ping(self):
        return True


# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    event.listen(eng, "connect", enable_sqlite_fk)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


# ============================================================================
# API CLIENT
# ============================================================================


@pytest.fixture
def client(session_factory, fake_redis):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setattr(settings, "admin_api_token", ADMIN_TOKEN)
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def upcoming_monday() -> date:
    """A Monday 1-2 weeks ahead: in the future in any time zone, inside the horizon."""
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) % 7 + 7)


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_service(db):
    def _make(name="Standard Cleaning", price=100.0, duration_min=60, pricing_type="fixed_item", **fields):
        options = fields.pop("options", [])
        frequencies = fields.pop("frequencies", [])
        area_sizes = fields.pop("area_sizes", None)
        service = Services(
            name=name,
            price=price,
            duration_min=duration_min,
            pricing_type=pricing_type,
            area_sizes=json.dumps(area_sizes) if area_sizes is not None else None,
            **fields,
        )
        service.options = [
            ServiceOptions(name=o["name"], price=o["price"], max_quantity=o.get("max_quantity", 10), sort_order=i)
            for i, o in enumerate(options)
        ]
        service.frequencies = [
            ServiceFrequencies(name=f["name"], discount_percent=f["discount_percent"], sort_order=i)
            for i, f in enumerate(frequencies)
        ]
        db.add(service)
        db.commit()
        db.refresh(service)
        return service
    return _make


@pytest.fixture
def company(db):
    """Default week, minimum booking value 0, New York time."""
    row = CompanySettings(
        id=1,
        company_name="Sparkle Co",
        time_zone="America/New_York",
        minimum_booking_value=0,
    )
    db.add(row)
    db.commit()
    return row
