# backend/cleanbook/routers/company.py
# Singleton settings: GET is public, PUT (upsert) needs X-Admin-Token

import logging

from fastapi import APIRouter, Depends
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..models.generated import CompanySettings as DBCompanySettings
from ..redis_client import get_redis
from ..schemas.company import CompanySettingsRead, CompanySettingsUpdate
from ..services.company_settings import (
    business_hours_of,
    get_company_settings,
    get_or_create_company_settings,
)
from ..services.slots import invalidate_availability_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company-settings", tags=["company"])

# Changing any of these reshapes every day's candidate starts
AVAILABILITY_FIELDS = {"business_hours", "time_zone"}


@router.get("", response_model=CompanySettingsRead)
def read_company_settings(db: Session = Depends(get_db)):
    return _to_read(get_company_settings(db))


@router.put("", response_model=CompanySettingsRead, dependencies=[Depends(require_admin)])
def update_company_settings(
    data: CompanySettingsUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = get_or_create_company_settings(db)

    fields = data.model_dump(exclude_unset=True, exclude={"business_hours"})
    for field, value in fields.items():
        if value is None:
            continue
        setattr(obj, field, value)
    if data.business_hours is not None:
        obj.business_hours = data.business_hours.model_dump_json()

    db.commit()
    db.refresh(obj)

    if AVAILABILITY_FIELDS & data.model_fields_set:
        invalidate_availability_cache(redis)
    logger.info(f"Company settings updated: {sorted(data.model_fields_set)}")
    return _to_read(obj)


def _to_read(obj: DBCompanySettings) -> CompanySettingsRead:
    return CompanySettingsRead(
        company_name=obj.company_name or "",
        company_email=obj.company_email or "",
        company_phone=obj.company_phone or "",
        company_address=obj.company_address or "",
        time_zone=obj.time_zone,
        time_format=obj.time_format or "12h",
        business_hours=business_hours_of(obj),
        minimum_booking_value=obj.minimum_booking_value or 0.0,
    )
