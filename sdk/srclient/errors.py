"""
Error types for the schema registry SDK.

This module defines all exception types raised by the SDK and the emulator:
- SchemaRegistryError: Base exception
- NotFoundError: Unknown schema ID, subject or version
- InvalidRequestError: Malformed schema text, type or version
- ConflictError: Registration rejected by the registry
- UpstreamUnavailableError: Transport failure talking to the registry
- UnimplementedError: Administrative endpoint not backed by real logic

Invariants:
    - All errors inherit from SchemaRegistryError
    - Every error carries the registry error_code and HTTP status_code
    - Registry error bodies map to exactly one exception class

How to change safely:
    - New registry error codes go in the constants below
    - Keep error_from_response() and to_body() symmetric
"""

from __future__ import annotations

from typing import Any, Dict, Optional

# Registry error codes (error_code field of the error body)
SUBJECT_NOT_FOUND = 40401
VERSION_NOT_FOUND = 40402
SCHEMA_NOT_FOUND = 40403
INVALID_SCHEMA = 42201
INVALID_VERSION = 42202
CONFLICT = 40901
UNSUPPORTED_MEDIA_TYPE = 41501
UNIMPLEMENTED = 50101
INTERNAL = 500


class SchemaRegistryError(Exception):
    """Base exception for all schema registry errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        error_code: Registry error code (error_code in the response body)
        status_code: HTTP status the registry answers with
        details: Additional error context
    """

    status_code: int = 500
    default_error_code: int = INTERNAL

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.code = code or "SCHEMA_REGISTRY_ERROR"
        self.details = details or {}

    def to_body(self) -> Dict[str, Any]:
        """Registry error body for this exception."""
        return {"error_code": self.error_code, "message": self.message}


class NotFoundError(SchemaRegistryError):
    """Schema, subject or version not found.

    Raised when:
    - No live entry has the requested ID
    - Subject has no live versions
    - Version is absent under the subject
    - No registered schema is equivalent to the queried text
    """

    status_code = 404
    default_error_code = SCHEMA_NOT_FOUND

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        subject: Optional[str] = None,
        version: Optional[int] = None,
        schema_id: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            error_code=error_code,
            code="NOT_FOUND",
            details={"subject": subject, "version": version, "schema_id": schema_id},
        )
        self.subject = subject
        self.version = version
        self.schema_id = schema_id


class InvalidRequestError(SchemaRegistryError):
    """Malformed schema text, schema type or version.

    Raised when:
    - Schema text is empty or not parseable for its type
    - Schema type is unknown
    - Version is neither a positive integer nor "latest"
    - Eager codec creation fails for a fetched schema
    """

    status_code = 422
    default_error_code = INVALID_SCHEMA

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        super().__init__(message, error_code=error_code, code="INVALID_REQUEST")


class ConflictError(SchemaRegistryError):
    """Registration rejected as incompatible.

    The reference catalog accepts every registration; this error surfaces
    only from registries that enforce compatibility on write.
    """

    status_code = 409
    default_error_code = CONFLICT

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        super().__init__(message, error_code=error_code, code="CONFLICT")


class UpstreamUnavailableError(SchemaRegistryError):
    """Failed to reach the schema registry.

    Raised when:
    - Registry is unreachable
    - Connection or read times out at the transport level
    - Response body cannot be decoded
    """

    status_code = 503
    default_error_code = INTERNAL

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, code="UPSTREAM_UNAVAILABLE", details={"url": url})
        self.url = url


class UnimplementedError(SchemaRegistryError):
    """Endpoint exists but is not backed by real logic."""

    status_code = 501
    default_error_code = UNIMPLEMENTED

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        super().__init__(message, error_code=error_code, code="UNIMPLEMENTED")


def error_from_response(status_code: int, body: Any) -> SchemaRegistryError:
    """Build the exception matching a registry error reply.

    Args:
        status_code: HTTP status of the reply
        body: Decoded JSON body (usually {"error_code", "message"})

    Returns:
        SchemaRegistryError subclass instance
    """
    error_code: Optional[int] = None
    message = f"HTTP {status_code}"
    if isinstance(body, dict):
        error_code = body.get("error_code")
        message = body.get("message") or message

    if status_code == 404:
        return NotFoundError(message, error_code=error_code)
    if status_code in (400, 415, 422):
        return InvalidRequestError(message, error_code=error_code)
    if status_code == 409:
        return ConflictError(message, error_code=error_code)
    if status_code == 501:
        return UnimplementedError(message, error_code=error_code)

    err = SchemaRegistryError(message, error_code=error_code)
    err.status_code = status_code
    return err
