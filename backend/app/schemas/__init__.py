from app.schemas.event import ErrorResponse, HealthResponse

__all__ = ["ErrorResponse", "HealthResponse"]
