# rag/exceptions.py
"""
Error taxonomy for the ingestion / retrieval core.

Every error carries a human-readable message plus a ``details`` dict that
ends up in the logs; HTTP views never echo either back to the caller.
"""
from typing import Any


class RagError(Exception):
    """Base class for all rag errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(RagError):
    """Missing or malformed input, raised before any external call."""

    def __init__(self, message: str, field: str | None = None,
                 details: dict[str, Any] | None = None) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ExtractionError(RagError):
    """Text (or image description) could not be produced from an artifact."""

    def __init__(self, message: str, kind: str | None = None,
                 details: dict[str, Any] | None = None) -> None:
        details = details or {}
        if kind:
            details["kind"] = kind
        super().__init__(message, details)


class UpstreamError(RagError):
    """An embedding / chat / vision model call failed or came back empty."""

    def __init__(self, message: str, model: str | None = None,
                 details: dict[str, Any] | None = None) -> None:
        details = details or {}
        if model:
            details["model"] = model
        super().__init__(message, details)


class PersistenceError(RagError):
    """Blob store or database read/write failed."""

    def __init__(self, message: str, operation: str | None = None,
                 details: dict[str, Any] | None = None) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class NotFoundError(RagError):
    """A referenced media / workspace row does not exist."""

    def __init__(self, resource: str, identifier: Any,
                 details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details[f"{resource}_id"] = str(identifier)
        super().__init__(f"{resource} not found: {identifier}", details)
