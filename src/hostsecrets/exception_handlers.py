"""Global exception handlers for standardized error responses.

Implements RFC 7807 Problem Details for HTTP APIs. Secret storage errors
map onto status codes:
- InvalidArgumentError -> 400
- SecretSetNotFoundError -> 404
- WriteNotSupportedError -> 409
- SnapshotNotSupportedError -> 501
- StoreUnavailableError -> 503
"""

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hostsecrets.core.logging import logger
from hostsecrets.infrastructure.errors import (
    InvalidArgumentError,
    OperationCancelledError,
    SecretSetNotFoundError,
    SecretsError,
    SnapshotNotSupportedError,
    StoreUnavailableError,
    WriteNotSupportedError,
)
from hostsecrets.models.errors import ProblemDetail, ValidationErrorDetail

SECRETS_ERROR_STATUS: dict[type[SecretsError], tuple[int, str]] = {
    InvalidArgumentError: (400, "Invalid Argument"),
    SecretSetNotFoundError: (404, "Secrets Not Found"),
    WriteNotSupportedError: (409, "Write Not Supported"),
    SnapshotNotSupportedError: (501, "Snapshots Not Supported"),
    StoreUnavailableError: (503, "Secret Store Unavailable"),
    OperationCancelledError: (503, "Operation Cancelled"),
}


def _problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
    )


async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:  # noqa: ASYNC100
    """Handle HTTPException with an RFC 7807 ProblemDetail response."""
    logger.warning(
        f"HTTPException: {exc.status_code} - {exc.detail} "
        f"({request.method} {request.url.path})"
    )

    response = _problem_response(
        ProblemDetail(
            title="An error occurred",
            status=exc.status_code,
            detail=str(exc.detail),
            instance=str(request.url.path),
        )
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def secrets_exception_handler(
    request: Request, exc: SecretsError
) -> JSONResponse:  # noqa: ASYNC100
    """Map secret storage errors to their HTTP status."""
    status_code, title = 500, "Secrets Error"
    for error_type, mapped in SECRETS_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code, title = mapped
            break

    logger.warning(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}"
    )

    return _problem_response(
        ProblemDetail(
            title=title,
            status=status_code,
            detail=str(exc),
            instance=str(request.url.path),
        )
    )


async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:  # noqa: ASYNC100
    """Handle unexpected exceptions with 500 Internal Server Error."""
    logger.exception(f"Unexpected error: {type(exc).__name__}")

    return _problem_response(
        ProblemDetail(
            title="Internal Server Error",
            status=500,
            detail="An unexpected error occurred. Please try again later.",
            instance=str(request.url.path),
        )
    )


async def validation_exception_handler(  # noqa: ASYNC100
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors with field-level details."""
    logger.warning(f"Validation error: {len(exc.errors())} errors")

    errors = [
        ValidationErrorDetail(
            type=error["type"],
            loc=tuple(str(loc) for loc in error["loc"]),
            msg=error["msg"],
            input=error.get("input"),
        )
        for error in exc.errors()
    ]

    return _problem_response(
        ProblemDetail(
            title="Validation Error",
            status=422,
            detail=f"One or more validation errors occurred ({len(errors)} errors).",
            instance=str(request.url.path),
            errors=errors,
        )
    )
