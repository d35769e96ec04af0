# backend/cleanbook/schemas/slots.py
"""
Pydantic schemas for availability API.
"""

from pydantic import BaseModel


class TimeSlot(BaseModel):
    """One candidate start of the day view."""
    time: str  # "HH:MM"
    available: bool


class SlotCheckResponse(BaseModel):
    available: bool
