"""
Scholar Registry: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) translate
       them into structured JSON responses with the right status code.
Who:   Raised by services and the routes' upload handling; caught by the
       global handlers.

Exception Hierarchy:
    ScholarRegistryError (base)
    ├── ValidationError              → 400 Bad Request
    │   ├── InvalidIdentifierError   → 400 (malformed id, checked before any query)
    │   └── NoUpdatesProvidedError   → 400 (update carried zero effective changes)
    ├── ImageTooLargeError           → 413 Payload Too Large
    ├── NotFoundError                → 404 Not Found
    ├── StoreError                   → 500 Internal Server Error
    └── BlobStorageError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ScholarRegistryError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ScholarRegistryError):
    """
    Raised when client input is rejected.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdentifierError(ValidationError):
    """
    Raised when a path identifier is not a well-formed record id.

    When:    Before any store access, so a malformed id never reaches the database.
    HTTP:    400 Bad Request

    Example response:
        {"error": "invalid_identifier", "message": "Invalid ID format", ...}
    """

    def __init__(self, identifier: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["identifier"] = identifier
        super().__init__(message="Invalid ID format", field="id", context=ctx)
        self.identifier = identifier


class NoUpdatesProvidedError(ValidationError):
    """Raised when a PATCH carries no non-empty field, no image and no removal."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="No updates provided", context=context)


class ImageTooLargeError(ScholarRegistryError):
    """
    Raised by the upload-handling layer when an image exceeds MAX_IMAGE_SIZE.

    HTTP: 413 Payload Too Large
    """

    def __init__(self, size: int, limit: int, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx.update({"size": size, "max_size": limit})
        limit_mb = limit / (1024 * 1024)
        super().__init__(
            message=f"Image exceeds the maximum upload size of {limit_mb:.0f}MB",
            context=ctx,
        )
        self.size = size
        self.limit = limit


class NotFoundError(ScholarRegistryError):
    """
    Raised when a requested record does not exist.

    HTTP: 404 Not Found

    The database returns None (or a zero rowcount) for missing rows; services
    convert that into this exception so routes stay free of HTTP branching.
    """

    def __init__(
        self,
        resource: str = "record",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(ScholarRegistryError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic; the original
    exception type and identifiers are kept in `context` for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BlobStorageError(ScholarRegistryError):
    """
    Raised when an image upload or deletion against the blob store fails.

    HTTP: 500 Internal Server Error

    Not raised for best-effort deletions of superseded images; those are
    logged and discarded by BlobStore.delete_best_effort().
    """

    def __init__(
        self,
        message: str = "Image storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
