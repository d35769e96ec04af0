# backend/cleanbook/schemas/cart.py

from pydantic import BaseModel, Field

from ..services.cart import CartItem


class CartQuantityUpdate(BaseModel):
    quantity: int = Field(ge=1, strict=True)


class CartRead(BaseModel):
    session_id: str
    items: list[CartItem]
    total_price: float
    total_duration: int
    minimum_booking_value: float
    meets_minimum: bool
