# backend/cleanbook/routers/services.py
# Reads and quotes are public; writes need X-Admin-Token. DELETE = soft-delete (is_active)

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..models.generated import (
    ServiceFrequencies as DBServiceFrequencies,
    ServiceOptions as DBServiceOptions,
    Services as DBServices,
)
from ..schemas.pricing import (
    DEFAULT_OPTION_MAX_QUANTITY,
    CartItemSelection,
    LineSelection,
    PriceQuote,
    PricingFrequency,
    PricingOption,
    ServicePricing,
)
from ..schemas.services import (
    ServiceCreate,
    ServiceFrequenciesReplace,
    ServiceOptionsReplace,
    ServiceRead,
    ServiceUpdate,
)
from ..services.errors import BookingError
from ..services.pricing import pricing_from_service, quote_line

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=list[ServiceRead])
def list_services(db: Session = Depends(get_db)):
    services = (
        db.query(DBServices)
        .filter(DBServices.is_active == 1)
        .order_by(DBServices.sort_order, DBServices.id)
        .all()
    )
    result = []
    for obj in services:
        try:
            result.append(_to_read(obj))
        except BookingError:
            # pricing_from_service already logged the broken configuration
            continue
    return result


@router.get("/{id}", response_model=ServiceRead)
def get_service(id: int, db: Session = Depends(get_db)):
    return _to_read(_get_active(db, id))


@router.post("/{id}/quote", response_model=PriceQuote)
def quote_service(id: int, data: LineSelection, db: Session = Depends(get_db)):
    """Price a selection without touching any cart."""
    obj = _get_active(db, id)
    selection = CartItemSelection(service_id=obj.id, **data.model_dump())
    return quote_line(obj, selection)


@router.post(
    "",
    response_model=ServiceRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_service(
    data: ServiceCreate,
    db: Session = Depends(get_db),
):
    obj = DBServices(
        name=data.name,
        description=data.description,
        duration_min=data.duration_min,
        is_active=int(data.is_active),
        sort_order=data.sort_order,
    )
    _apply_pricing(obj, data.pricing)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info(f"Service {obj.id} created ({obj.pricing_type})")
    return _to_read(obj)


@router.patch("/{id}", response_model=ServiceRead, dependencies=[Depends(require_admin)])
def update_service(
    id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    fields = data.model_dump(exclude_unset=True, exclude={"pricing"})
    for field, value in fields.items():
        if value is None and field != "description":
            continue
        if field == "is_active":
            value = int(value)
        setattr(obj, field, value)
    if data.pricing is not None:
        _apply_pricing(obj, data.pricing)

    db.commit()
    db.refresh(obj)
    return _to_read(obj)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_service(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    obj.is_active = 0
    db.commit()


@router.put("/{id}/options", response_model=ServiceRead, dependencies=[Depends(require_admin)])
def replace_options(
    id: int,
    data: ServiceOptionsReplace,
    db: Session = Depends(get_db),
):
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    _sync_options(obj, data.options)
    db.commit()
    db.refresh(obj)
    return _to_read(obj)


@router.put("/{id}/frequencies", response_model=ServiceRead, dependencies=[Depends(require_admin)])
def replace_frequencies(
    id: int,
    data: ServiceFrequenciesReplace,
    db: Session = Depends(get_db),
):
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    _sync_frequencies(obj, data.frequencies)
    db.commit()
    db.refresh(obj)
    return _to_read(obj)


# ── Helpers ──────────────────────────────────────────────────────────────


def _get_active(db: Session, id: int) -> DBServices:
    obj = db.get(DBServices, id)
    if not obj or not obj.is_active:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


def _to_read(obj: DBServices) -> ServiceRead:
    return ServiceRead(
        id=obj.id,
        name=obj.name,
        description=obj.description,
        duration_min=obj.duration_min,
        is_active=bool(obj.is_active),
        sort_order=obj.sort_order,
        pricing=pricing_from_service(obj),
    )


def _apply_pricing(obj: DBServices, pricing: ServicePricing) -> None:
    """Store the pricing variant; fields of other models are cleared."""
    obj.pricing_type = pricing.pricing_type
    obj.price = pricing.price
    obj.base_price = getattr(pricing, "base_price", None)
    obj.price_per_unit = getattr(pricing, "price_per_unit", None)
    obj.minimum_price = getattr(pricing, "minimum_price", None)

    if pricing.pricing_type == "area_based":
        obj.area_sizes = json.dumps([a.model_dump() for a in pricing.area_sizes])
    else:
        obj.area_sizes = None

    if pricing.pricing_type == "base_plus_addons":
        _sync_options(obj, pricing.options)
        _sync_frequencies(obj, pricing.frequencies)
    else:
        obj.options = []
        obj.frequencies = []


def _sync_options(obj: DBServices, options: list[PricingOption]) -> None:
    """Replace the option list; rows whose id is resent are updated in place."""
    existing = {o.id: o for o in obj.options}
    rows = []
    for index, option in enumerate(options):
        row = existing.get(option.id) if option.id is not None else None
        if row is None:
            row = DBServiceOptions()
        row.name = option.name
        row.price = option.price
        row.max_quantity = (
            option.max_quantity if option.max_quantity is not None else DEFAULT_OPTION_MAX_QUANTITY
        )
        row.sort_order = index
        rows.append(row)
    obj.options = rows


def _sync_frequencies(obj: DBServices, frequencies: list[PricingFrequency]) -> None:
    existing = {f.id: f for f in obj.frequencies}
    rows = []
    for index, frequency in enumerate(frequencies):
        row = existing.get(frequency.id) if frequency.id is not None else None
        if row is None:
            row = DBServiceFrequencies()
        row.name = frequency.name
        row.discount_percent = frequency.discount_percent
        row.sort_order = index
        rows.append(row)
    obj.frequencies = rows
