"""Health check response models."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok", description="Service status")
    version: str = Field(..., description="Host version")
    secrets_store: str = Field(..., description="Configured backing secret store")
    encryption_supported: bool = Field(
        ..., description="Whether the store encrypts secrets at rest"
    )
