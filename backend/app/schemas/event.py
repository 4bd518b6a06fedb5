"""
Pydantic schemas for event endpoint responses.
Event documents themselves are passed through untyped; these only
describe the error envelope and the health payload for the OpenAPI docs.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    database: str
