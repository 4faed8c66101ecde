"""
Exceptions raised by the transfer toolkit.

Run-level failures (connectivity, unsupported capabilities, missing
dependencies between resource kinds) propagate to the caller. Per-item
failures are caught by the destinations and recorded as logs instead.
"""

from typing import Any, Dict, Optional


class TransferError(Exception):
    """Base exception class for transfer errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class ConfigurationError(TransferError):
    """Raised when an adapter or transfer configuration is invalid."""
    pass


class ConnectivityError(TransferError):
    """Raised when a backend is unreachable or rejects our credentials."""
    pass


class UnsupportedResource(TransferError):
    """Raised when a run requests a resource kind an adapter does not support."""
    pass


class UnsupportedOperation(TransferError):
    """Raised when an export/import operation is not implemented by an adapter."""
    pass


class ResourceDependencyError(TransferError):
    """Raised when a resource kind is requested without the kinds it depends on."""
    pass


class InvalidCredential(TransferError):
    """Raised when a user's password hash cannot be migrated as-is."""
    pass


class ConversionWarning(TransferError):
    """An unmappable schema type or index. Logged, never raised out of a run."""
    pass


class ItemImportError(TransferError):
    """Raised by a destination for a single record that could not be created."""
    pass


class HttpError(TransferError):
    """Raised for a REST response with status >= 400 or a transport failure."""

    def __init__(self, status: int, body: Any = None):
        message = f"{status}: {body}" if status else f"Transport error: {body}"
        super().__init__(message, details={"status": status, "body": body})
        self.status = status
        self.body = body


class DbError(TransferError):
    """Raised when a relational query fails."""
    pass
