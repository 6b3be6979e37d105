"""Error response models following RFC 7807 Problem Details."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

RFC7231_BASE_URL = "https://datatracker.ietf.org/doc/html/rfc7231#section-"

# Status codes returned by the host API, mapped to their RFC sections
status_to_section: dict[int, str] = {
    400: "6.5.1",
    401: "https://datatracker.ietf.org/doc/html/rfc7235#section-3.1",
    403: "6.5.3",
    404: "6.5.4",
    409: "6.5.8",
    422: "https://datatracker.ietf.org/doc/html/rfc4918#section-11.2",
    500: "6.6.1",
    501: "6.6.2",
    503: "6.6.4",
}


def get_rfc_section_url(status: int) -> str:
    """Get the RFC section URL for an HTTP status code.

    Unknown codes fall back to 500 Internal Server Error.
    """
    section = status_to_section.get(status, status_to_section[500])
    if section.startswith("https://"):
        return section
    return f"{RFC7231_BASE_URL}{section}"


class ValidationErrorDetail(BaseModel):
    """Field-level validation error."""

    type: str = Field(..., description="Error type")
    loc: tuple[str, ...] = Field(..., description="Error location in request")
    msg: str = Field(..., description="Human-readable error message")
    input: Any = Field(None, description="Invalid input value")


class ProblemDetail(BaseModel):
    """Problem Detail response as defined in RFC 7807.

    Attributes:
        type: URI reference to the problem type (derived from status).
        title: Short summary of the problem type.
        status: HTTP status code.
        detail: Explanation specific to this occurrence.
        instance: Request path that produced the problem.
        errors: Validation errors (422 responses only).
    """

    type: str | None = Field(default=None, description="Problem type URI")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str | None = Field(default=None, description="Occurrence detail")
    instance: str | None = Field(
        default=None,
        description="Request path",
        json_schema_extra={"example": "/admin/functions/httptrigger/keys"},
    )
    errors: list[ValidationErrorDetail] | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def set_default_type(cls, values: dict[str, Any]) -> dict[str, Any]:
        if values.get("type") is None:
            values["type"] = get_rfc_section_url(values.get("status", 500))
        return values
