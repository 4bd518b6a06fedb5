"""
Event Catalog API - Main Application Entry Point

Serves event documents from MongoDB by slug:
- One lazily connected, process-wide MongoDB client owned by the lifespan
- Structured logging with request correlation
- Prometheus metrics at /metrics
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import get_db_manager
from app.api.middleware import RequestLoggingMiddleware
from app.api.router import api_router
from app.core.config import get_settings
from app.core.logging import get_logger, setup_logging
from app.core.metrics import metrics_endpoint
from app.infrastructure.mongodb import MongoConnectionManager
from app.models.booking import ensure_booking_indexes
from app.models.event import ensure_event_indexes
from app.schemas.event import HealthResponse

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    db_manager = MongoConnectionManager(
        initializers=[ensure_event_indexes, ensure_booking_indexes],
    )
    app.state.db_manager = db_manager

    # Warm the connection; requests retry on their own if this fails
    if settings.MONGODB_URI:
        try:
            await db_manager.acquire()
            logger.info("mongodb_ready")
        except Exception as e:
            logger.warning("mongodb_unavailable", error=str(e), message="Will retry on first request")
    else:
        logger.warning("mongodb_uri_missing", message="Event lookups will fail until MONGODB_URI is set")

    yield

    await db_manager.close()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event lookup API backed by MongoDB",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.get("/health", tags=["Health"], response_model=HealthResponse)
async def health_check(db_manager: MongoConnectionManager = Depends(get_db_manager)):
    """Health check endpoint for Docker and load balancers. Never opens a connection."""
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        database="connected" if db_manager.is_connected else "disconnected",
    )


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
