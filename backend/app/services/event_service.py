"""
Event service handling slug lookups.
"""

from typing import Any, Optional

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.event import EVENTS_COLLECTION


def normalize_slug(slug: str) -> str:
    """Trim and lowercase a slug so it matches the stored form."""
    return slug.strip().lower()


async def find_event_by_slug(db: AsyncIOMotorDatabase, slug: str) -> Optional[dict[str, Any]]:
    """Single equality lookup on the unique slug index. Expects a normalised slug."""
    return await db[EVENTS_COLLECTION].find_one({"slug": slug})


def serialize_event(document: dict[str, Any]) -> dict[str, Any]:
    """Plain JSON-ready copy of an event document (ObjectId -> str, datetime -> ISO)."""
    return jsonable_encoder(document, custom_encoder={ObjectId: str})
