"""
Shared FastAPI dependencies.
"""

from fastapi import Request

from app.infrastructure.mongodb import MongoConnectionManager


def get_db_manager(request: Request) -> MongoConnectionManager:
    """The connection manager created by the application lifespan."""
    return request.app.state.db_manager
