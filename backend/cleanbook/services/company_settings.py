# backend/cleanbook/services/company_settings.py
"""
Company settings singleton (row id=1).

Reads never create the row: when it is missing a transient default is
returned. PUT /api/company-settings upserts it.
"""

import json
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..config import settings
from ..models.generated import CompanySettings as DBCompanySettings
from ..schemas.company import DEFAULT_BUSINESS_HOURS, BusinessHours

logger = logging.getLogger(__name__)

SETTINGS_ID = 1


def get_company_settings(db: Session) -> DBCompanySettings:
    row = db.get(DBCompanySettings, SETTINGS_ID)
    if row is not None:
        return row
    return DBCompanySettings(
        id=SETTINGS_ID,
        company_name="",
        company_email="",
        company_phone="",
        company_address="",
        time_zone=settings.default_time_zone,
        time_format="12h",
        business_hours=None,
        minimum_booking_value=0.0,
    )


def get_or_create_company_settings(db: Session) -> DBCompanySettings:
    row = db.get(DBCompanySettings, SETTINGS_ID)
    if row is None:
        row = get_company_settings(db)
        db.add(row)
    return row


def business_hours_of(row: DBCompanySettings) -> BusinessHours:
    return parse_business_hours(row.business_hours)


def zone_of(row: DBCompanySettings) -> ZoneInfo:
    """Business time zone; unknown names fall back to DEFAULT_TIME_ZONE."""
    name = row.time_zone or settings.default_time_zone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown time zone {name!r}, using {settings.default_time_zone}")
        return ZoneInfo(settings.default_time_zone)


def parse_business_hours(raw: str | dict | None) -> BusinessHours:
    """
    Parse stored business hours JSON.

    Missing or malformed data falls back to the default week
    (Mon–Fri 08:00–18:00, weekend closed).
    """
    if not raw:
        return DEFAULT_BUSINESS_HOURS
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        return BusinessHours.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Invalid business_hours, using defaults: {e}")
        return DEFAULT_BUSINESS_HOURS
