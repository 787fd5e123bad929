"""
Prosthesis Orders Backend — Pydantic Response Schemas
=======================================================

What:  Pydantic models for the fixed-shape parts of the API contract.
Why:   Order records themselves are schemaless (any field is accepted and
       returned), so only acknowledgments, errors and health are modelled.
       They drive serialization and the OpenAPI docs.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ActionResponse(BaseModel):
    """
    What:  Acknowledgment for update, delete and bulk update.

    Example:
        {"success": true, "message": "3 registros actualizados"}
    """
    success: bool = Field(default=True, description="Always true on 200")
    message: str = Field(description="Human-readable result")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "forbidden")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which fields are missing)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "validation_error",
            "message": "Faltan datos requeridos (paciente, empresa, medico)",
            "details": {"missing_fields": ["paciente"]},
            "request_id": "1f0c2a9b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and container health checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="Document store: connected, disconnected")
    mail_provider: str = Field(description="Configured notification provider")
    uptime_seconds: float = Field(description="Seconds since service started")
