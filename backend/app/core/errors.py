"""
Typed errors raised by the data layer.

Lower layers raise these and never build HTTP responses themselves;
the route handlers decide how each one is presented to the client.
"""

from typing import Optional


class AppError(Exception):
    """Base error with an HTTP-equivalent status signal."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(AppError):
    """Required configuration (e.g. MONGODB_URI) is missing."""

    status_code = 500


class FieldValidationError(AppError):
    """One or more document fields failed their constraints."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class NotFoundError(AppError):
    status_code = 404


class ReferenceNotFoundError(NotFoundError):
    """A document references another document that does not exist."""

    def __init__(self, collection: str, reference_id: object) -> None:
        label = collection.removesuffix("s").capitalize()
        super().__init__(f"{label} with ID {reference_id} does not exist")
        self.collection = collection
        self.reference_id = reference_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: object) -> None:
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id
