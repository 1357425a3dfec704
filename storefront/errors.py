"""Exception hierarchy shared by the HTTP client, storage and favorites manager."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Types of errors that can occur."""

    NETWORK_ERROR = "network_error"
    TIMEOUT_ERROR = "timeout_error"
    AUTHENTICATION_ERROR = "authentication_error"
    AUTHORIZATION_ERROR = "authorization_error"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    SERVER_ERROR = "server_error"
    STORAGE_ERROR = "storage_error"
    INTERNAL_ERROR = "internal_error"


def classify_status(status_code: int | None) -> ErrorType:
    """Map an HTTP status code onto the coarse :class:`ErrorType` taxonomy."""

    if status_code is None:
        return ErrorType.NETWORK_ERROR
    if status_code == 401:
        return ErrorType.AUTHENTICATION_ERROR
    if status_code == 403:
        return ErrorType.AUTHORIZATION_ERROR
    if status_code == 404:
        return ErrorType.NOT_FOUND
    if status_code in (400, 409, 422):
        return ErrorType.VALIDATION_ERROR
    if status_code == 408 or status_code == 504:
        return ErrorType.TIMEOUT_ERROR
    if status_code >= 500:
        return ErrorType.SERVER_ERROR
    return ErrorType.INTERNAL_ERROR


class StorefrontError(Exception):
    """Base class for every error raised by the :mod:`storefront` package."""

    error_type: ErrorType = ErrorType.INTERNAL_ERROR


class ApiRequestError(StorefrontError):
    """Raised when the REST API cannot be reached or answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: Any = None,
        error_type: ErrorType | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail
        self.error_type = error_type or classify_status(status_code)

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class ApiResponseError(StorefrontError):
    """Raised when the API answers 2xx but reports ``success: false``."""

    error_type = ErrorType.SERVER_ERROR


class StorageError(StorefrontError):
    """Raised by storage backends when the underlying store is unavailable."""

    error_type = ErrorType.STORAGE_ERROR


class FavoriteToggleTimeout(StorefrontError):
    """Raised when a remote favorite mutation exceeds the configured bound."""

    error_type = ErrorType.TIMEOUT_ERROR

    def __init__(self, product_id: str, timeout: float) -> None:
        super().__init__(
            f"Favorite toggle for {product_id!r} did not complete within {timeout:g}s"
        )
        self.product_id = product_id
        self.timeout = timeout


__all__ = [
    "ApiRequestError",
    "ApiResponseError",
    "ErrorType",
    "FavoriteToggleTimeout",
    "StorageError",
    "StorefrontError",
    "classify_status",
]
