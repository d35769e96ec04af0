# backend/cleanbook/schemas/bookings.py

import json
from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from .company import HHMM_PATTERN
from .pricing import CartItemSelection, PriceBreakdown, SelectedFrequencySnapshot, SelectedOptionSnapshot


BookingStatus = Literal["pending", "confirmed", "cancelled", "completed"]
PaymentMethod = Literal["site", "online"]
PaymentStatus = Literal["unpaid", "paid"]


class BookingCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: str = Field(min_length=1)
    customer_address: str = Field(min_length=1)

    booking_date: date
    start_time: str = Field(pattern=HHMM_PATTERN)

    cart_items: list[CartItemSelection] = Field(min_length=1)
    payment_method: PaymentMethod = "site"


class BookingUpdate(BaseModel):
    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None

    customer_name: Optional[str] = Field(None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = Field(None, min_length=1)
    customer_address: Optional[str] = Field(None, min_length=1)

    # Reschedule: both re-checked against availability
    booking_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)


class BookingItemRead(BaseModel):
    id: int
    service_id: int
    service_name: str
    pricing_type: str
    quantity: int
    price: float
    area_size: Optional[str] = None
    area_value: Optional[float] = None
    selected_options: list[SelectedOptionSnapshot] = []
    selected_frequency: Optional[SelectedFrequencySnapshot] = None
    customer_notes: Optional[str] = None
    price_breakdown: Optional[PriceBreakdown] = None

    model_config = {"from_attributes": True}

    @field_validator("selected_options", "selected_frequency", "price_breakdown", mode="before")
    @classmethod
    def load_json(cls, v, info):
        if isinstance(v, str):
            v = json.loads(v)
        if v is None and info.field_name == "selected_options":
            return []
        return v


class BookingRead(BaseModel):
    id: int

    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: str
    customer_address: str

    booking_date: str
    start_time: str
    end_time: str
    total_duration_minutes: int
    total_price: float

    payment_method: PaymentMethod
    payment_status: PaymentStatus
    status: BookingStatus
    created_at: Optional[str] = None

    items: list[BookingItemRead] = []

    model_config = {"from_attributes": True}
