# backend/cleanbook/services/pricing.py
"""
Cart line price calculation.

Prices are never stored per selection; they are recomputed from the
service's pricing model every time (cart, quote endpoint, booking write),
so the server is the only authority on what a booking costs.

Rules per pricing_type:
    fixed_item        price × quantity
    area_based        max(preset price | sqft × price_per_unit, minimum) × quantity
    base_plus_addons  (base + Σ option × qty) × quantity, minus frequency discount
    custom_quote      not priced (0); notes required, minimum shown for display
"""

import json
import logging
import math
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from ..models.generated import Services as DBService
from ..schemas.pricing import (
    DEFAULT_OPTION_MAX_QUANTITY,
    AreaBasedPricing,
    BasePlusAddonsPricing,
    CartItemSelection,
    CustomQuotePricing,
    FixedItemPricing,
    PriceBreakdown,
    PriceQuote,
    PricingFrequency,
    PricingOption,
    SelectedFrequencySnapshot,
    SelectedOptionSnapshot,
    ServicePricing,
)
from .errors import BookingValidationError, InvalidQuantity, InvalidSelection

logger = logging.getLogger(__name__)

_pricing_adapter = TypeAdapter(ServicePricing)


def calculate_price(
    pricing: ServicePricing,
    selection: CartItemSelection,
    duration_min: int,
) -> PriceQuote:
    """
    Price one cart line.

    Raises:
        InvalidQuantity: quantity below 1
        InvalidSelection: selection does not fit the pricing model
    """
    quantity = selection.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity("Quantity must be a positive integer")

    calculator = _CALCULATORS.get(pricing.pricing_type)
    if calculator is None:
        raise InvalidSelection(f"Unsupported pricing type: {pricing.pricing_type}")

    fields = calculator(pricing, selection, quantity)
    return PriceQuote(
        service_id=selection.service_id,
        pricing_type=pricing.pricing_type,
        quantity=quantity,
        duration_min=duration_min * quantity,
        **fields,
    )


# ── Per-model calculators ────────────────────────────────────────────────


def _price_fixed_item(
    pricing: FixedItemPricing,
    selection: CartItemSelection,
    quantity: int,
) -> dict:
    final_price = round(pricing.price * quantity, 2)
    return dict(
        price=final_price,
        breakdown=PriceBreakdown(subtotal=final_price, final_price=final_price),
    )


def _price_area_based(
    pricing: AreaBasedPricing,
    selection: CartItemSelection,
    quantity: int,
) -> dict:
    minimum = pricing.minimum_price or 0.0
    preset_name = (selection.area_size or "").strip()

    if preset_name and preset_name.lower() != "custom":
        preset = next((p for p in pricing.area_sizes if p.name == preset_name), None)
        if preset is None:
            raise InvalidSelection(f"Unknown area size: {preset_name}")
        area_price = preset.price
        area_label = preset.name
        area_value = preset.sqft
    else:
        if pricing.price_per_unit is None:
            raise InvalidSelection("Select one of the available area sizes")
        sqft = _parse_area(selection.area_value)
        area_price = sqft * pricing.price_per_unit
        area_label = f"Custom: {sqft:g} sqft"
        area_value = sqft

    unit_price = max(area_price, minimum)
    final_price = round(unit_price * quantity, 2)

    return dict(
        price=final_price,
        area_size=area_label,
        area_value=area_value,
        breakdown=PriceBreakdown(
            area_price=round(area_price, 2),
            subtotal=round(area_price * quantity, 2),
            minimum_price=pricing.minimum_price,
            final_price=final_price,
        ),
    )


def _price_base_plus_addons(
    pricing: BasePlusAddonsPricing,
    selection: CartItemSelection,
    quantity: int,
) -> dict:
    base_price = pricing.effective_base_price
    options_by_id = {o.id: o for o in pricing.options if o.id is not None}

    # Merge repeated option ids before clamping
    requested: dict[int, int] = {}
    for sel in selection.selected_options:
        if sel.option_id not in options_by_id:
            raise InvalidSelection(f"Unknown option: {sel.option_id}")
        requested[sel.option_id] = requested.get(sel.option_id, 0) + sel.quantity

    options_total = 0.0
    selected_options: list[SelectedOptionSnapshot] = []
    for option_id, raw_qty in requested.items():
        option = options_by_id[option_id]
        max_qty = option.max_quantity if option.max_quantity is not None else DEFAULT_OPTION_MAX_QUANTITY
        qty = min(max(raw_qty, 0), max_qty)
        if qty == 0:
            continue
        options_total += option.price * qty
        selected_options.append(SelectedOptionSnapshot(
            id=option_id,
            name=option.name,
            price=option.price,
            quantity=qty,
        ))

    subtotal = (base_price + options_total) * quantity

    discount_percent = 0.0
    selected_frequency = None
    if selection.selected_frequency_id is not None:
        frequency = next(
            (f for f in pricing.frequencies if f.id == selection.selected_frequency_id),
            None,
        )
        if frequency is None:
            raise InvalidSelection(f"Unknown frequency: {selection.selected_frequency_id}")
        discount_percent = frequency.discount_percent
        selected_frequency = SelectedFrequencySnapshot(
            id=frequency.id,
            name=frequency.name,
            discount_percent=discount_percent,
        )

    final_price = round(subtotal * (1 - discount_percent / 100), 2)
    discount_amount = round(subtotal * discount_percent / 100, 2)

    return dict(
        price=final_price,
        selected_options=selected_options,
        selected_frequency=selected_frequency,
        breakdown=PriceBreakdown(
            base_price=round(base_price, 2),
            options_total=round(options_total, 2),
            subtotal=round(subtotal, 2),
            discount_percent=discount_percent if discount_percent > 0 else None,
            discount_amount=discount_amount if discount_amount > 0 else None,
            final_price=final_price,
        ),
    )


def _price_custom_quote(
    pricing: CustomQuotePricing,
    selection: CartItemSelection,
    quantity: int,
) -> dict:
    notes = (selection.customer_notes or "").strip()
    if not notes:
        raise InvalidSelection("Describe the job so we can prepare a quote")

    return dict(
        price=0.0,
        customer_notes=notes,
        breakdown=PriceBreakdown(
            subtotal=0.0,
            minimum_price=pricing.minimum_price,
            final_price=0.0,
        ),
    )


_CALCULATORS = {
    "fixed_item": _price_fixed_item,
    "area_based": _price_area_based,
    "base_plus_addons": _price_base_plus_addons,
    "custom_quote": _price_custom_quote,
}


# ── Helpers ──────────────────────────────────────────────────────────────


def _parse_area(value) -> float:
    """Custom square footage must be a finite number above zero."""
    if value is None or isinstance(value, bool):
        raise InvalidSelection("Enter the area in square feet")
    try:
        sqft = float(value)
    except (TypeError, ValueError):
        raise InvalidSelection("Area must be a number") from None
    if not math.isfinite(sqft) or sqft <= 0:
        raise InvalidSelection("Area must be greater than zero")
    return sqft


# ── ORM adapters ─────────────────────────────────────────────────────────


def load_area_sizes(raw: Optional[str]) -> list[dict]:
    try:
        sizes = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        logger.warning("Ignoring malformed area_sizes JSON")
        return []
    return sizes if isinstance(sizes, list) else []


def pricing_from_service(service: DBService) -> ServicePricing:
    """Build the tagged pricing variant for a services row."""
    pricing_type = service.pricing_type or "fixed_item"
    data: dict = {"pricing_type": pricing_type, "price": service.price}

    if pricing_type == "area_based":
        data["area_sizes"] = load_area_sizes(service.area_sizes)
        data["price_per_unit"] = service.price_per_unit
        data["minimum_price"] = service.minimum_price
    elif pricing_type == "base_plus_addons":
        data["base_price"] = service.base_price
        data["options"] = [PricingOption.model_validate(o) for o in service.options]
        data["frequencies"] = [PricingFrequency.model_validate(f) for f in service.frequencies]
    elif pricing_type == "custom_quote":
        data["minimum_price"] = service.minimum_price

    try:
        return _pricing_adapter.validate_python(data)
    except ValidationError as e:
        logger.error(f"Service {service.id} has invalid pricing configuration: {e}")
        raise BookingValidationError(f"Service {service.id} cannot be priced") from None


def quote_line(service: DBService, selection: CartItemSelection) -> PriceQuote:
    """Price a selection against a services row."""
    return calculate_price(pricing_from_service(service), selection, service.duration_min)
