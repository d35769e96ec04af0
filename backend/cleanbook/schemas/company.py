# backend/cleanbook/schemas/company.py

from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# 24h "HH:MM", zero padded, so plain string comparison orders times
HHMM_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"


class DayHours(BaseModel):
    is_open: bool = Field(validation_alias=AliasChoices("is_open", "isOpen"))
    start: str = Field("09:00", pattern=HHMM_PATTERN)
    end: str = Field("17:00", pattern=HHMM_PATTERN)

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_range(self):
        if self.is_open and self.end <= self.start:
            raise ValueError("end must be later than start")
        return self


class BusinessHours(BaseModel):
    monday: DayHours = DayHours(is_open=True, start="08:00", end="18:00")
    tuesday: DayHours = DayHours(is_open=True, start="08:00", end="18:00")
    wednesday: DayHours = DayHours(is_open=True, start="08:00", end="18:00")
    thursday: DayHours = DayHours(is_open=True, start="08:00", end="18:00")
    friday: DayHours = DayHours(is_open=True, start="08:00", end="18:00")
    saturday: DayHours = DayHours(is_open=False, start="09:00", end="14:00")
    sunday: DayHours = DayHours(is_open=False, start="09:00", end="14:00")

    def for_weekday(self, weekday: int) -> DayHours:
        """Hours for date.weekday() (0 = Monday)."""
        return getattr(self, WEEKDAYS[weekday])


DEFAULT_BUSINESS_HOURS = BusinessHours()


class CompanySettingsUpdate(BaseModel):
    company_name: Optional[str] = None
    company_email: Optional[str] = None
    company_phone: Optional[str] = None
    company_address: Optional[str] = None
    time_zone: Optional[str] = None
    time_format: Optional[Literal["12h", "24h"]] = None
    business_hours: Optional[BusinessHours] = None
    minimum_booking_value: Optional[float] = Field(None, ge=0)

    @field_validator("time_zone")
    @classmethod
    def check_time_zone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}") from None
        return v


class CompanySettingsRead(BaseModel):
    company_name: str
    company_email: str
    company_phone: str
    company_address: str
    time_zone: str
    time_format: Literal["12h", "24h"]
    business_hours: BusinessHours
    minimum_booking_value: float
