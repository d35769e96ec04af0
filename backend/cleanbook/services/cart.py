# backend/cleanbook/services/cart.py
"""
Session-scoped cart.

A Cart holds at most one line per service. Every mutation returns a new
immutable CartState; CartStore persists the lines in Redis between
requests. Lines are priced by services.pricing before they get here.
"""

import logging
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError
from redis import Redis

from ..schemas.pricing import (
    CartItemSelection,
    PriceBreakdown,
    PriceQuote,
    PricingType,
    SelectedFrequencySnapshot,
    SelectedOptionSnapshot,
)
from .errors import InvalidQuantity, NotFound

logger = logging.getLogger(__name__)

EventSink = Callable[[str, dict], None]


class CartItem(BaseModel):
    service_id: int
    service_name: str
    pricing_type: PricingType
    duration_min: int  # per unit
    quantity: int
    calculated_price: float
    selection: CartItemSelection
    area_size: Optional[str] = None
    area_value: Optional[float] = None
    selected_options: list[SelectedOptionSnapshot] = []
    selected_frequency: Optional[SelectedFrequencySnapshot] = None
    customer_notes: Optional[str] = None
    price_breakdown: PriceBreakdown

    model_config = {"frozen": True}

    @classmethod
    def from_quote(
        cls,
        service_name: str,
        unit_duration_min: int,
        selection: CartItemSelection,
        quote: PriceQuote,
    ) -> "CartItem":
        return cls(
            service_id=quote.service_id,
            service_name=service_name,
            pricing_type=quote.pricing_type,
            duration_min=unit_duration_min,
            quantity=quote.quantity,
            calculated_price=quote.price,
            selection=selection,
            area_size=quote.area_size,
            area_value=quote.area_value,
            selected_options=quote.selected_options,
            selected_frequency=quote.selected_frequency,
            customer_notes=quote.customer_notes,
            price_breakdown=quote.breakdown,
        )


class CartState(BaseModel):
    items: tuple[CartItem, ...] = ()
    total_price: float = 0.0
    total_duration: int = 0

    model_config = {"frozen": True}


class Cart:
    def __init__(
        self,
        items: Iterable[CartItem] | None = None,
        on_event: EventSink | None = None,
    ):
        self._items: dict[int, CartItem] = {item.service_id: item for item in items or ()}
        self._on_event = on_event

    @property
    def state(self) -> CartState:
        items = tuple(self._items.values())
        return CartState(
            items=items,
            total_price=round(sum(i.calculated_price for i in items), 2),
            total_duration=sum(i.duration_min * i.quantity for i in items),
        )

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    def add_item(self, item: CartItem) -> CartState:
        """Insert, or replace the line already held for this service."""
        is_new = item.service_id not in self._items
        self._items[item.service_id] = item
        if is_new:
            self._emit("add_to_cart", item)
        return self.state

    def update_quantity(self, service_id: int, quantity: int) -> CartState:
        """
        Change a line's quantity, scaling its price proportionally.

        Raises:
            InvalidQuantity: quantity is not a positive integer
            NotFound: service not in cart
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantity("Quantity must be a positive integer")
        item = self._items.get(service_id)
        if item is None:
            raise NotFound(f"Service {service_id} is not in the cart")

        scale = quantity / item.quantity
        new_price = round(item.calculated_price * scale, 2)
        # Per-unit parts (base, options, area) stay; totals follow the quantity
        old = item.price_breakdown
        breakdown = old.model_copy(update={
            "subtotal": round(old.subtotal * scale, 2),
            "discount_amount": (
                round(old.discount_amount * scale, 2) if old.discount_amount is not None else None
            ),
            "final_price": new_price,
        })
        self._items[service_id] = item.model_copy(update={
            "quantity": quantity,
            "calculated_price": new_price,
            "price_breakdown": breakdown,
            "selection": item.selection.model_copy(update={"quantity": quantity}),
        })
        return self.state

    def remove_item(self, service_id: int) -> CartState:
        item = self._items.pop(service_id, None)
        if item is not None:
            self._emit("remove_from_cart", item)
        return self.state

    def clear(self) -> CartState:
        self._items.clear()
        return self.state

    def meets_minimum(self, minimum_booking_value: float) -> bool:
        return self.state.total_price >= (minimum_booking_value or 0)

    def to_booking_items(self) -> list[dict]:
        """Selections in the shape POST /api/bookings expects as cart_items."""
        return [item.selection.model_dump() for item in self._items.values()]

    def _emit(self, event_type: str, item: CartItem) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event_type, {
                "service_id": item.service_id,
                "service_name": item.service_name,
                "price": item.calculated_price,
                "quantity": item.quantity,
            })
        except Exception as e:
            logger.error(f"Cart event {event_type} failed: {e}")


_cart_items_adapter = TypeAdapter(list[CartItem])


class CartStore:
    """Carts as JSON in Redis under cart:{session_id}, sliding TTL."""

    KEY_PREFIX = "cart"
    TTL_SECONDS = 7 * 24 * 3600

    def __init__(self, redis: Redis):
        self.redis = redis

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}:{session_id}"

    def load(self, session_id: str) -> list[CartItem]:
        key = self._key(session_id)
        raw = self.redis.get(key)
        if raw is None:
            return []
        try:
            items = _cart_items_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Dropping malformed cart {key}: {e}")
            self.redis.delete(key)
            return []
        self.redis.expire(key, self.TTL_SECONDS)
        return items

    def save(self, session_id: str, items: Iterable[CartItem]) -> None:
        items = list(items)
        if not items:
            self.delete(session_id)
            return
        self.redis.set(
            self._key(session_id),
            _cart_items_adapter.dump_json(items),
            ex=self.TTL_SECONDS,
        )

    def delete(self, session_id: str) -> None:
        self.redis.delete(self._key(session_id))
