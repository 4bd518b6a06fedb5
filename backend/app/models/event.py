"""
Event documents in the `events` collection.

Only `slug` has a known shape here; every other field is stored and
returned as-is. Slugs are stored already normalised (trimmed, lowercase)
and are unique, enforced by the `slug_1` index.
"""

from pymongo import ASCENDING
from motor.motor_asyncio import AsyncIOMotorDatabase

EVENTS_COLLECTION = "events"


async def ensure_event_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the unique slug index. Safe to call on every startup."""
    await db[EVENTS_COLLECTION].create_index(
        [("slug", ASCENDING)], unique=True, name="slug_1"
    )
