# backend/cleanbook/schemas/pricing.py
"""
Pricing models and selections.

A service's pricing is a tagged union keyed by `pricing_type`; each variant
carries only the fields its model needs (extra fields are rejected), so the
calculator can switch on the variant exhaustively.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


PricingType = Literal["fixed_item", "area_based", "base_plus_addons", "custom_quote"]

DEFAULT_OPTION_MAX_QUANTITY = 10


class AreaSizePreset(BaseModel):
    name: str = Field(min_length=1)
    sqft: Optional[float] = None
    price: float = Field(ge=0)


class PricingOption(BaseModel):
    id: Optional[int] = None
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    max_quantity: Optional[int] = Field(DEFAULT_OPTION_MAX_QUANTITY, ge=0)

    model_config = {"from_attributes": True}


class PricingFrequency(BaseModel):
    id: Optional[int] = None
    name: str = Field(min_length=1)
    discount_percent: float = Field(0, ge=0, le=100)

    model_config = {"from_attributes": True}


class FixedItemPricing(BaseModel):
    pricing_type: Literal["fixed_item"] = "fixed_item"
    price: float = Field(ge=0)

    model_config = {"extra": "forbid"}


class AreaBasedPricing(BaseModel):
    pricing_type: Literal["area_based"] = "area_based"
    price: float = Field(0, ge=0, description="Catalog 'from' price")
    area_sizes: list[AreaSizePreset] = []
    price_per_unit: Optional[float] = Field(None, gt=0)
    minimum_price: Optional[float] = Field(None, ge=0)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def check_priceable(self):
        if not self.area_sizes and self.price_per_unit is None:
            raise ValueError("area_based pricing needs area_sizes or price_per_unit")
        return self


class BasePlusAddonsPricing(BaseModel):
    pricing_type: Literal["base_plus_addons"] = "base_plus_addons"
    price: float = Field(ge=0)
    base_price: Optional[float] = Field(None, ge=0)
    options: list[PricingOption] = []
    frequencies: list[PricingFrequency] = []

    model_config = {"extra": "forbid"}

    @property
    def effective_base_price(self) -> float:
        return self.base_price if self.base_price is not None else self.price


class CustomQuotePricing(BaseModel):
    pricing_type: Literal["custom_quote"] = "custom_quote"
    price: float = Field(0, ge=0)
    minimum_price: Optional[float] = Field(None, ge=0)

    model_config = {"extra": "forbid"}


ServicePricing = Annotated[
    Union[FixedItemPricing, AreaBasedPricing, BasePlusAddonsPricing, CustomQuotePricing],
    Field(discriminator="pricing_type"),
]


# ── Selections ───────────────────────────────────────────────────────────


class SelectedOptionIn(BaseModel):
    option_id: int
    quantity: int = 1


class LineSelection(BaseModel):
    """What the customer picked for one service."""
    quantity: int = Field(1, ge=1)

    # area_based: preset name, or "custom" / None with area_value
    area_size: Optional[str] = None
    area_value: Union[float, str, None] = None

    # base_plus_addons
    selected_options: list[SelectedOptionIn] = []
    selected_frequency_id: Optional[int] = None

    # custom_quote
    customer_notes: Optional[str] = None


class CartItemSelection(LineSelection):
    service_id: int


# ── Results ──────────────────────────────────────────────────────────────


class SelectedOptionSnapshot(BaseModel):
    id: int
    name: str
    price: float
    quantity: int


class SelectedFrequencySnapshot(BaseModel):
    id: int
    name: str
    discount_percent: float


class PriceBreakdown(BaseModel):
    base_price: Optional[float] = None
    area_price: Optional[float] = None
    options_total: Optional[float] = None
    subtotal: float
    discount_percent: Optional[float] = None
    discount_amount: Optional[float] = None
    minimum_price: Optional[float] = None
    final_price: float


class PriceQuote(BaseModel):
    service_id: int
    pricing_type: PricingType
    quantity: int
    price: float
    duration_min: int
    breakdown: PriceBreakdown
    area_size: Optional[str] = None
    area_value: Optional[float] = None
    selected_options: list[SelectedOptionSnapshot] = []
    selected_frequency: Optional[SelectedFrequencySnapshot] = None
    customer_notes: Optional[str] = None
