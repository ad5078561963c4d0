"""
Travel Story Backend — Shared Response Schemas
================================================

What:  Envelope models shared by every router (errors, plain messages, health).
How:   Field names are snake_case in Python and camelCase on the wire through
       `CamelModel`'s alias generator.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: camelCase JSON aliases, population by field name or alias."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Error body returned by every global exception handler.

    Example:
        {"error": true, "message": "All fields are required", "request_id": "1f2e3d4c"}
    """
    error: bool = Field(default=True, description="Always true for error responses")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    """Success body for operations that return no resource."""
    error: bool = Field(default=False)
    message: str


class HealthResponse(BaseModel):
    """Liveness plus database reachability, returned by GET /health."""
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
