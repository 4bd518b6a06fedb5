"""
Booking service: the write path for bookings.

VALIDATION ORDER
================

Every write goes through the same explicit steps, no save hooks:

  1. Parse the event reference. A malformed id is a field error.
  2. Reference check: the event must exist. Runs on create, and on update
     only when the event reference actually changes. A missing event raises
     ReferenceNotFoundError (404 signal), never a field error.
  3. Field check: BookingDocument enforces required fields and email syntax.
     Failures raise FieldValidationError with one message per field.
  4. Persist, stamping createdAt / updatedAt.
"""

from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import DESCENDING

from app.core.errors import BookingNotFoundError, FieldValidationError, ReferenceNotFoundError
from app.core.logging import get_logger
from app.core.metrics import record_booking_write
from app.models.booking import BOOKINGS_COLLECTION, BookingDocument, utcnow
from app.models.event import EVENTS_COLLECTION

logger = get_logger(__name__)


def _parse_event_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise FieldValidationError("Booking validation failed", {"eventId": "Event ID is required"})
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise FieldValidationError(
        "Booking validation failed", {"eventId": "Event ID must be a valid identifier"}
    )


def _build_document(**fields: Any) -> BookingDocument:
    try:
        return BookingDocument(**fields)
    except ValidationError as e:
        errors = {}
        for error in e.errors():
            field = str(error["loc"][0]) if error["loc"] else "__root__"
            errors[field] = str(error.get("ctx", {}).get("error", error["msg"]))
        raise FieldValidationError("Booking validation failed", errors) from e


async def validate_event_reference(db: AsyncIOMotorDatabase, event_id: ObjectId) -> None:
    """Raise ReferenceNotFoundError unless an event with this id exists."""
    event = await db[EVENTS_COLLECTION].find_one({"_id": event_id}, projection={"_id": 1})
    if event is None:
        raise ReferenceNotFoundError(EVENTS_COLLECTION, event_id)


async def create_booking(db: AsyncIOMotorDatabase, event_id: Any, email: Any) -> dict[str, Any]:
    """Validate and insert a new booking. Returns the stored document."""
    try:
        event_oid = _parse_event_id(event_id)
        await validate_event_reference(db, event_oid)
        booking = _build_document(eventId=event_oid, email=email)
    except ReferenceNotFoundError:
        record_booking_write("create", "invalid_reference")
        logger.warning("booking_event_missing", event_id=str(event_id))
        raise
    except FieldValidationError as e:
        record_booking_write("create", "invalid_fields")
        logger.info("booking_invalid", fields=sorted(e.errors))
        raise

    document = booking.to_mongo()
    result = await db[BOOKINGS_COLLECTION].insert_one(document)
    document["_id"] = result.inserted_id

    record_booking_write("create", "success")
    logger.info(
        "booking_created",
        booking_id=str(result.inserted_id),
        event_id=str(event_oid),
    )
    return document


async def update_booking(
    db: AsyncIOMotorDatabase,
    booking_id: Any,
    *,
    event_id: Any = None,
    email: Optional[str] = None,
) -> dict[str, Any]:
    """
    Change a booking's event reference and/or email.
    The event reference is re-checked only when it differs from the stored one.
    """
    if not (isinstance(booking_id, ObjectId) or ObjectId.is_valid(booking_id)):
        raise BookingNotFoundError(booking_id)
    booking_oid = ObjectId(booking_id)

    collection = db[BOOKINGS_COLLECTION]
    existing = await collection.find_one({"_id": booking_oid})
    if existing is None:
        raise BookingNotFoundError(booking_id)

    try:
        new_event_id = existing.get("eventId") if event_id is None else _parse_event_id(event_id)
        if new_event_id != existing.get("eventId"):
            await validate_event_reference(db, new_event_id)

        fields = {
            "eventId": new_event_id,
            "email": existing.get("email") if email is None else email,
            "updatedAt": utcnow(),
        }
        if existing.get("createdAt") is not None:
            fields["createdAt"] = existing["createdAt"]
        booking = _build_document(**fields)
    except ReferenceNotFoundError:
        record_booking_write("update", "invalid_reference")
        logger.warning("booking_event_missing", booking_id=str(booking_oid), event_id=str(event_id))
        raise
    except FieldValidationError as e:
        record_booking_write("update", "invalid_fields")
        logger.info("booking_invalid", booking_id=str(booking_oid), fields=sorted(e.errors))
        raise

    document = booking.to_mongo()
    changes = {
        "eventId": document["eventId"],
        "email": document["email"],
        "updatedAt": document["updatedAt"],
    }
    result = await collection.update_one({"_id": booking_oid}, {"$set": changes})
    if result.matched_count == 0:
        # Deleted between the read and the write
        raise BookingNotFoundError(booking_id)

    record_booking_write("update", "success")
    logger.info("booking_updated", booking_id=str(booking_oid), event_id=str(document["eventId"]))
    return {"_id": booking_oid, **document}


async def list_bookings_for_event(db: AsyncIOMotorDatabase, event_id: Any) -> list[dict[str, Any]]:
    """All bookings for an event, newest first. Uses the eventId index."""
    event_oid = _parse_event_id(event_id)
    cursor = db[BOOKINGS_COLLECTION].find({"eventId": event_oid}).sort("createdAt", DESCENDING)
    return await cursor.to_list(length=None)
