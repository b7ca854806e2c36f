# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to fix the request.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class SupervisionException(Exception):
    """
    Base exception for the Supervision API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPERVISION_ERROR",
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
# Generic Exceptions
# =============================================================================

class ValidationFailedError(SupervisionException):
    """Raised when input breaks a business rule (bad id, missing field, ...)."""

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="VALIDATION_FAILED",
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


class DuplicateError(SupervisionException):
    """Raised when a unique field is already taken by another record."""

    def __init__(self, entity: str, field: str, value: str):
        super().__init__(
            message=f"A {entity} with this {field} already exists: {value}",
            code="DUPLICATE",
            status_code=409,
            suggestion=f"Use a different {field} or edit the existing {entity}",
            details={"entity": entity, "field": field, "value": value}
        )


class ResourceNotFoundError(SupervisionException):
    """Base for 404 errors; subclasses fix the entity name."""

    entity = "Resource"

    def __init__(self, resource_id: str):
        key = f"{self.entity.lower().replace(' ', '_')}_id"
        super().__init__(
            message=f"{self.entity} not found: {resource_id}",
            code=f"{self.entity.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {key} is correct",
            details={key: resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    entity = "User"


class StoreNotFoundError(ResourceNotFoundError):
    entity = "Store"


class ProductNotFoundError(ResourceNotFoundError):
    entity = "Product"


class RouteNotFoundError(ResourceNotFoundError):
    entity = "Route"


class FormTemplateNotFoundError(ResourceNotFoundError):
    entity = "Form template"


# =============================================================================
# Auth Exceptions
# =============================================================================

class InvalidCredentialsError(SupervisionException):
    """Raised when a login attempt does not match an active user."""

    def __init__(self):
        super().__init__(
            message="Invalid cedula or password",
            code="INVALID_CREDENTIALS",
            status_code=401,
            suggestion="Check the credentials or ask an administrator to reactivate the account",
        )


class PermissionDeniedError(SupervisionException):
    """Raised when the authenticated user lacks the required role."""

    def __init__(self, required_roles: list[str]):
        super().__init__(
            message="You do not have permission to perform this action",
            code="PERMISSION_DENIED",
            status_code=403,
            suggestion=f"This action requires one of the roles: {', '.join(required_roles)}",
            details={"required_roles": required_roles}
        )


# =============================================================================
# Google Maps Exceptions
# =============================================================================

class MapsNotConfiguredError(SupervisionException):
    """Raised when a Google Maps call is needed but no key is configured."""

    def __init__(self):
        super().__init__(
            message="Google Maps API key is not configured",
            code="MAPS_NOT_CONFIGURED",
            status_code=500,
            suggestion="Set GOOGLE_MAPS_API_KEY in the server environment",
        )


class DirectionsError(SupervisionException):
    """Raised when the Directions API cannot build a route."""

    def __init__(self, message: str, api_status: str | None = None):
        super().__init__(
            message=f"Could not compute driving directions: {message}",
            code="DIRECTIONS_FAILED",
            status_code=400,
            suggestion="Check the store coordinates and the order of stops",
            details={"api_status": api_status} if api_status else None
        )


class PlacesError(SupervisionException):
    """Raised when the Places API rejects a lookup."""

    def __init__(self, message: str, api_status: str | None = None):
        super().__init__(
            message=f"Places lookup failed: {message}",
            code="PLACES_FAILED",
            status_code=400,
            details={"api_status": api_status} if api_status else None
        )


class ExternalServiceError(SupervisionException):
    """Raised when a third-party HTTP API is unreachable."""

    def __init__(self, service: str, error: str):
        super().__init__(
            message=f"{service} request failed: {error}",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=502,
            suggestion="Try again later or contact support if the issue persists",
            details={"service": service, "error": error}
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(SupervisionException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(SupervisionException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class SpreadsheetImportError(SupervisionException):
    """Raised when a store spreadsheet has blocking errors."""

    def __init__(self, message: str, errors: list[dict], warnings: list[dict]):
        super().__init__(
            message=message,
            code="SPREADSHEET_INVALID",
            status_code=400,
            suggestion="Fix the listed rows and upload the file again",
            details={"errors": errors, "warnings": warnings}
        )


class StorageUploadError(SupervisionException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def supervision_exception_handler(
    request: Request,
    exc: SupervisionException
) -> JSONResponse:
    """
    Convert SupervisionException to JSON response.

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
