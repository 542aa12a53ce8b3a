# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to fix it.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class WeldShopException(Exception):
    """
    Base exception for the WeldShop API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "WELDSHOP_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Validation Exceptions
# =============================================================================

class ValidationFailedError(WeldShopException):
    """Raised when a form is missing required fields or has bad values."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_FAILED",
            status_code=400,
            suggestion="Fill in the required fields and submit again",
            details={"fields": fields} if fields else None,
        )


class DeleteNotConfirmedError(WeldShopException):
    """Raised when a delete request arrives without explicit confirmation."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"Deleting this {entity} cannot be undone and must be confirmed",
            code="DELETE_NOT_CONFIRMED",
            status_code=409,
            suggestion="Repeat the request with ?confirm=true",
            details={"entity": entity, "id": entity_id},
        )


# =============================================================================
# Lookup Exceptions
# =============================================================================

class EntityNotFoundError(WeldShopException):
    """Raised when a row ID doesn't exist in its table."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity.capitalize()} not found: {entity_id}",
            code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {entity} id is correct and it hasn't been deleted",
            details={"id": entity_id},
        )


# =============================================================================
# Timesheet Exceptions
# =============================================================================

class ClockStateError(WeldShopException):
    """Raised when a clock action doesn't fit the employee's current state."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="CLOCK_STATE_INVALID",
            status_code=409,
            suggestion=suggestion,
        )


class ClockOutError(WeldShopException):
    """
    Raised when the clock-out sequence stops part way.

    The entry and any usage rows already written stay persisted; `step`
    records how far the sequence got so a retry can resume from there.
    """

    def __init__(self, message: str, entry_id: str | None, step: str | None):
        super().__init__(
            message=f"Error: {message}. Please check your inputs and try again.",
            code="CLOCK_OUT_FAILED",
            status_code=502,
            suggestion="Retry the clock-out; completed steps will not be repeated",
            details={"entry_id": entry_id, "step": step},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def weldshop_exception_handler(
    request: Request,
    exc: WeldShopException
) -> JSONResponse:
    """
    Convert WeldShopException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
