"""Centralized exception hierarchy and handlers for the application.

All services and routes raise exceptions from this hierarchy rather than
generic exceptions or HTTPException directly. The registered handler turns
them into JSON responses with the matching HTTP status code.

Exception Hierarchy:
    AppException (base)
    ├── ValidationError (400)
    │   └── OverlappingPeriodError (400)
    └── NotFoundError (404)

Price lookups are never reported through this hierarchy: an unavailable
price is a soft outcome (``None``) handled by the calculators.
"""

import logging
from datetime import date
from typing import Any
from uuid import UUID

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base exception class for all application errors.

    Attributes:
        status_code: HTTP status code for this error type
        detail: User-facing error message
        error_code: Machine-readable error code (optional)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    error_code: str | None = None

    def __init__(
        self,
        detail: str | None = None,
        *,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            detail: Custom error message (overrides class default)
            error_code: Machine-readable error identifier
        """
        self.detail = detail or self.__class__.detail
        self.error_code = error_code or self.__class__.error_code
        super().__init__(self.detail)

    def to_body(self) -> dict[str, Any]:
        """Build the JSON body returned to the client."""
        body: dict[str, Any] = {"detail": self.detail}
        if self.error_code:
            body["error_code"] = self.error_code
        return body


class ValidationError(AppException):
    """
    Raised when input validation fails.

    Maps to HTTP 400 Bad Request.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Validation error"
    error_code = "VALIDATION_ERROR"


class OverlappingPeriodError(ValidationError):
    """
    Raised when an interest rate period would overlap an existing one.

    The write is rejected, never corrected. The conflicting period's id and
    bounds are carried so callers can show the user what it collides with.
    """

    detail = "Interest rate period overlaps an existing period"
    error_code = "OVERLAPPING_INTEREST_RATE_PERIOD"

    def __init__(
        self,
        *,
        proposed_start: date,
        proposed_end: date,
        conflicting_id: UUID,
        conflicting_start: date,
        conflicting_end: date | None,
    ) -> None:
        self.proposed_start = proposed_start
        self.proposed_end = proposed_end
        self.conflicting_id = conflicting_id
        self.conflicting_start = conflicting_start
        self.conflicting_end = conflicting_end
        super().__init__(
            f"Interest rate period {proposed_start} to {proposed_end} overlaps with "
            f"existing period {conflicting_start} to {conflicting_end or 'ongoing'}"
        )

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["conflicting_period"] = {
            "id": str(self.conflicting_id),
            "start_date": self.conflicting_start.isoformat(),
            "end_date": self.conflicting_end.isoformat() if self.conflicting_end else None,
        }
        return body


class NotFoundError(AppException):
    """
    Raised when a requested resource is not found.

    Used when the owning bank account, exchange or roboadvisor does not exist.
    Maps to HTTP 404 Not Found.
    """

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"
    error_code = "NOT_FOUND"


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """
    Handle application exceptions and convert to HTTP responses.

    Args:
        request: FastAPI request object
        exc: The exception instance

    Returns:
        JSONResponse with error details and HTTP status code

    Logging:
        - Server errors (5xx): Full stack trace
        - Client errors (4xx): Message only
    """
    log_extra = {
        "status_code": exc.status_code,
        "error_code": exc.error_code,
        "request_path": request.url.path,
    }
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.detail}", exc_info=True, extra=log_extra)
    else:
        logger.warning(f"{exc.__class__.__name__}: {exc.detail}", extra=log_extra)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
    )
