# backend/cleanbook/routers/cart.py
"""
Cart API endpoints (session scoped, stored in Redis).

Lines are priced server-side on add; re-adding a service replaces its line.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from redis import Redis, RedisError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import Services as DBServices
from ..redis_client import get_redis
from ..schemas.cart import CartQuantityUpdate, CartRead
from ..schemas.pricing import CartItemSelection
from ..services.cart import Cart, CartItem, CartStore
from ..services.company_settings import get_company_settings
from ..services.events import emit_analytics
from ..services.pricing import quote_line

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart/{session_id}", tags=["cart"])

SessionId = Annotated[str, Path(min_length=8, max_length=128, pattern=r"^[A-Za-z0-9_-]+$")]


@router.get("", response_model=CartRead)
def get_cart(
    session_id: SessionId,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    store = _store(redis)
    cart = _load(store, session_id, redis)
    return _to_read(db, session_id, cart)


@router.post("/items", response_model=CartRead)
def add_item(
    data: CartItemSelection,
    session_id: SessionId,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    service = db.get(DBServices, data.service_id)
    if not service or not service.is_active:
        raise HTTPException(status_code=404, detail="Service not found")

    quote = quote_line(service, data)
    item = CartItem.from_quote(service.name, service.duration_min, data, quote)

    store = _store(redis)
    cart = _load(store, session_id, redis)
    cart.add_item(item)
    _save(store, session_id, cart)
    return _to_read(db, session_id, cart)


@router.patch("/items/{service_id}", response_model=CartRead)
def update_item_quantity(
    service_id: int,
    data: CartQuantityUpdate,
    session_id: SessionId,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    store = _store(redis)
    cart = _load(store, session_id, redis)
    cart.update_quantity(service_id, data.quantity)
    _save(store, session_id, cart)
    return _to_read(db, session_id, cart)


@router.delete("/items/{service_id}", response_model=CartRead)
def remove_item(
    service_id: int,
    session_id: SessionId,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    store = _store(redis)
    cart = _load(store, session_id, redis)
    cart.remove_item(service_id)
    _save(store, session_id, cart)
    return _to_read(db, session_id, cart)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    session_id: SessionId,
    redis: Redis | None = Depends(get_redis),
):
    store = _store(redis)
    try:
        store.delete(session_id)
    except RedisError as e:
        logger.error(f"Cart store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")


# ── Helpers ──────────────────────────────────────────────────────────────


def _store(redis: Redis | None) -> CartStore:
    if redis is None:
        raise HTTPException(status_code=503, detail="Cart storage unavailable")
    return CartStore(redis)


def _load(store: CartStore, session_id: str, redis: Redis) -> Cart:
    try:
        items = store.load(session_id)
    except RedisError as e:
        logger.error(f"Cart store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")
    return Cart(items, on_event=lambda event_type, payload: emit_analytics(event_type, payload, redis))


def _save(store: CartStore, session_id: str, cart: Cart) -> None:
    try:
        store.save(session_id, cart.items)
    except RedisError as e:
        logger.error(f"Cart store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")


def _to_read(db: Session, session_id: str, cart: Cart) -> CartRead:
    minimum = get_company_settings(db).minimum_booking_value or 0.0
    state = cart.state
    return CartRead(
        session_id=session_id,
        items=list(state.items),
        total_price=state.total_price,
        total_duration=state.total_duration,
        minimum_booking_value=minimum,
        meets_minimum=cart.meets_minimum(minimum),
    )
