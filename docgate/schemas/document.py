"""
DocGate — Pydantic Response Schemas
=====================================

What:  Models describing what the collection endpoints return.
How:   FastAPI serializes them (by alias, so driver-style camelCase keys such as
       ``insertedId`` reach the client) and publishes them in the OpenAPI docs.

Documents themselves have no schema: they travel as plain dicts whose
ObjectId/datetime values have been made JSON-safe by the service layer.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Write results
# ══════════════════════════════════════════════════════════════════════════


class InsertResult(BaseModel):
    """Outcome of insert_one: driver acknowledgement and the assigned id."""
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = Field(description="Whether the write was acknowledged")
    inserted_id: str = Field(alias="insertedId", description="Store-assigned identifier")


class InsertResponse(BaseModel):
    """
    Returned with 201 by POST /collections/{name} and POST /collections/orders.

    Example:
        {
            "message": "Document inserted",
            "result": {"acknowledged": true, "insertedId": "65a1f0c2e4b0a1b2c3d4e5f6"}
        }
    """
    message: str = Field(description="Human-readable success message")
    result: InsertResult


class UpdateResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool
    matched_count: int = Field(alias="matchedCount")
    modified_count: int = Field(alias="modifiedCount")


class OrderUpdateResponse(BaseModel):
    """Returned by PUT /collections/orders/{id} when the order exists."""
    message: str = Field(default="Order updated successfully")
    result: UpdateResult


class StatusMessage(BaseModel):
    """
    Body of generic DELETE/PUT responses: ``{"msg": "success"}`` or
    ``{"msg": "Document not found"}``.
    """
    msg: str


# ══════════════════════════════════════════════════════════════════════════
# Error / health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Invalid order data",
            "details": {"field": "phoneNumber"},
            "request_id": "1f3a9c2b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
