"""Company settings bootstrap script."""

import sqlite3

import pytest
from sqlalchemy import create_engine

from cleanbook.models.generated import Base

import init_company


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "bootstrap.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    return path


def test_creates_row_once(db_path):
    created = init_company.init_company(db_path, "Sparkle Co", "America/Chicago", 80.0)
    again = init_company.init_company(db_path, "Other", "UTC", 0.0)

    assert (created, again) == (True, False)

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT company_name, time_zone, minimum_booking_value, time_format FROM company_settings"
        ).fetchall()
    finally:
        conn.close()
    assert row == [("Sparkle Co", "America/Chicago", 80.0, "12h")]


def test_missing_database_file(tmp_path):
    with pytest.raises(RuntimeError):
        init_company.init_company(tmp_path / "nope.db", "X", "UTC", 0.0)


@pytest.mark.parametrize("url, expected", [
    ("sqlite:////var/data/cleanbook.db", "/var/data/cleanbook.db"),
    ("sqlite:///./data/cleanbook.db", "data/cleanbook.db"),
])
def test_sqlite_path(url, expected, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    path = init_company.get_sqlite_db_path(url)

    assert str(path).endswith(expected)


def test_rejects_non_sqlite_url():
    with pytest.raises(RuntimeError):
        init_company.get_sqlite_db_path("postgresql://localhost/cleanbook")


def test_read_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./cleanbook.db")
    monkeypatch.setenv("COMPANY_NAME", "Sparkle Co")
    monkeypatch.setenv("COMPANY_TIME_ZONE", "Europe/Berlin")
    monkeypatch.setenv("MINIMUM_BOOKING_VALUE", "120")

    env = init_company.read_env()

    assert env["company_name"] == "Sparkle Co"
    assert env["time_zone"] == "Europe/Berlin"
    assert env["minimum_booking_value"] == 120.0


def test_read_env_rejects_unknown_zone(monkeypatch):
    monkeypatch.setenv("COMPANY_TIME_ZONE", "Mars/Olympus")

    with pytest.raises(RuntimeError):
        init_company.read_env()
