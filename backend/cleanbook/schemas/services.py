# backend/cleanbook/schemas/services.py

from typing import Optional
from pydantic import BaseModel, Field

from .pricing import PricingFrequency, PricingOption, ServicePricing


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    duration_min: int = Field(gt=0)
    pricing: ServicePricing
    is_active: bool = True
    sort_order: int = 0


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duration_min: Optional[int] = Field(None, gt=0)
    pricing: Optional[ServicePricing] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class ServiceRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    duration_min: int
    is_active: bool
    sort_order: int
    pricing: ServicePricing


class ServiceOptionsReplace(BaseModel):
    options: list[PricingOption]


class ServiceFrequenciesReplace(BaseModel):
    frequencies: list[PricingFrequency]
