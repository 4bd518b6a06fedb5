"""
Event endpoints.

GET /api/events/{slug} is the single place where data-layer failures are
classified into client-facing responses. Nothing from the driver or the
underlying exception ever reaches the response body.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.deps import get_db_manager
from app.core.errors import ConfigurationError, FieldValidationError, ReferenceNotFoundError
from app.core.logging import get_logger
from app.core.metrics import record_event_lookup
from app.infrastructure.mongodb import MongoConnectionManager
from app.schemas.event import ErrorResponse
from app.services.event_service import find_event_by_slug, normalize_slug, serialize_event

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])

INVALID_SLUG_MESSAGE = "Invalid slug parameter. Slug is required and must be a non-empty string."
CONFIGURATION_ERROR_MESSAGE = "Database configuration error. Please check server configuration."
INVALID_DATA_MESSAGE = "Invalid request data. Please check your input."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while fetching the event."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _is_valid_slug(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _failure_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, ConfigurationError) or "MONGODB_URI" in str(exc):
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, CONFIGURATION_ERROR_MESSAGE)
    if isinstance(exc, (FieldValidationError, ReferenceNotFoundError)):
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_DATA_MESSAGE)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR_MESSAGE)


@router.get("/", include_in_schema=False)
async def missing_slug_endpoint():
    """/api/events/ with no slug at all."""
    record_event_lookup("invalid")
    return _error(status.HTTP_400_BAD_REQUEST, INVALID_SLUG_MESSAGE)


@router.get(
    "/{slug}",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_event_by_slug_endpoint(
    slug: str,
    db_manager: MongoConnectionManager = Depends(get_db_manager),
):
    """
    Fetch a single event by slug.
    The slug is trimmed and lowercased before lookup, so " My-Event " finds "my-event".
    """
    if not _is_valid_slug(slug):
        record_event_lookup("invalid")
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_SLUG_MESSAGE)

    normalized_slug = normalize_slug(slug)

    try:
        db = await db_manager.get_database()
        event = await find_event_by_slug(db, normalized_slug)
    except Exception as e:
        record_event_lookup("error")
        logger.error(
            "event_fetch_failed",
            slug=normalized_slug,
            error_type=type(e).__name__,
            error=str(e),
            exc_info=e,
        )
        return _failure_response(e)

    if event is None:
        record_event_lookup("not_found")
        return _error(
            status.HTTP_404_NOT_FOUND,
            f'Event with slug "{normalized_slug}" not found.',
        )

    record_event_lookup("found")
    return JSONResponse(status_code=status.HTTP_200_OK, content=serialize_event(event))
