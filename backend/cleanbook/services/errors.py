# backend/cleanbook/services/errors.py
"""
Domain errors raised by pricing, cart and booking services.

Each error carries the HTTP status it maps to; main.py turns any
BookingError into a JSON response {"detail": message}.
"""


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSelection(BookingError):
    """Selection does not satisfy the service's pricing model."""


class InvalidQuantity(BookingError):
    """Cart quantity is not a positive integer."""


class BookingValidationError(BookingError):
    """Booking request is malformed or breaks a business rule."""


class InvalidStatusTransition(BookingError):
    """Requested booking status change is not allowed."""


class NotFound(BookingError):
    status_code = 404


class SlotConflict(BookingError):
    status_code = 409

    def __init__(self, message: str = "Time slot is no longer available"):
        super().__init__(message)
