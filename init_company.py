import os
import sqlite3
from pathlib import Path
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


SETTINGS_ID = 1


# ======================================================
# DB URL PARSER (SQLite only)
# ======================================================

def get_sqlite_db_path(database_url: str) -> Path:
    """
    Supports:
      sqlite:///./data/sqlite/cleanbook.db
      sqlite:////abs/path/to/cleanbook.db
    """
    parsed = urlparse(database_url)

    if parsed.scheme != "sqlite":
        raise RuntimeError("init_company supports only sqlite DATABASE_URL")

    if not parsed.path:
        raise RuntimeError("Invalid sqlite DATABASE_URL")

    raw_path = parsed.path

    # sqlite:///./path or sqlite:///../path  → relative to CWD
    if raw_path.startswith("/./") or raw_path.startswith("/../"):
        return (Path.cwd() / raw_path[1:]).resolve()

    # sqlite:////abs/path → absolute
    return Path(raw_path).resolve()


# ======================================================
# ENV
# ======================================================

def read_env() -> dict:
    load_dotenv()

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set")

    time_zone = os.getenv("COMPANY_TIME_ZONE") or os.getenv("DEFAULT_TIME_ZONE", "America/New_York")
    try:
        ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        raise RuntimeError(f"Unknown time zone: {time_zone}") from None

    return {
        "db_path": get_sqlite_db_path(database_url),
        "company_name": os.getenv("COMPANY_NAME", "Default Company"),
        "time_zone": time_zone,
        "minimum_booking_value": float(os.getenv("MINIMUM_BOOKING_VALUE", "0")),
    }


# ======================================================
# MAIN LOGIC
# ======================================================

def init_company(db_path: Path, company_name: str, time_zone: str, minimum_booking_value: float) -> bool:
    """
    Create the company settings row when missing.

    An existing row is never overwritten: admins edit it through
    PUT /api/company-settings. Returns True when the row was created.
    """
    if not db_path.exists():
        raise RuntimeError(f"Database file not found: {db_path}")

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM company_settings WHERE id = ?", (SETTINGS_ID,))
        if cur.fetchone():
            print("[BOOTSTRAP] Company settings already exist, nothing to do")
            return False

        # business_hours left NULL → default week until edited
        cur.execute(
            """
            INSERT INTO company_settings (id, company_name, time_zone, minimum_booking_value, business_hours)
            VALUES (?, ?, ?, ?, ?)
            """,
            (SETTINGS_ID, company_name, time_zone, minimum_booking_value, None),
        )
        conn.commit()
        print(f"[BOOTSTRAP] Company settings created ({company_name}, {time_zone})")
        return True
    finally:
        conn.close()


def main():
    env = read_env()
    init_company(**env)


# ======================================================
# ENTRYPOINT
# ======================================================

if __name__ == "__main__":
    main()
