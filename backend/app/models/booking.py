"""
Booking documents in the `bookings` collection.

Key design decisions:
- `eventId` references `events._id`; the event itself is never embedded
- `email` is trimmed and lowercased before it is checked
- `createdAt` / `updatedAt` are maintained by the booking service
- Index on `eventId` for per-event lookups
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pymongo import ASCENDING

BOOKINGS_COLLECTION = "bookings"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingDocument(BaseModel):
    """Field-level constraints for a booking, dumped in its persisted shape."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    event_id: Optional[ObjectId] = Field(default=None, alias="eventId", validate_default=True)
    email: Optional[str] = Field(default=None, validate_default=True)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("event_id", mode="before")
    @classmethod
    def _check_event_id(cls, value: Any) -> ObjectId:
        if value is None:
            raise ValueError("Event ID is required")
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        raise ValueError("Event ID must be a valid identifier")

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: Any) -> str:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Email is required")
        if not isinstance(value, str):
            raise ValueError("Please provide a valid email address")
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please provide a valid email address")
        return value

    def to_mongo(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


async def ensure_booking_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[BOOKINGS_COLLECTION].create_index([("eventId", ASCENDING)], name="eventId_1")
