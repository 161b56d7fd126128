"""
Error code catalog for the Location Ingestor.

This module defines the error codes returned by the HTTP API. Per-item
validation failures inside a batch are not errors at this level; they are
reported in the batch result and use ValidationErrorKind instead.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the application.

    Each error code maps to a specific HTTP status code:
    - Validation errors (4xx): Client request issues
    - Storage errors (5xx): The day log cannot be written or read
    - Internal errors (5xx): Server-side issues
    """

    # Validation errors (4xx)
    INVALID_REQUEST = "INVALID_REQUEST"
    """Malformed request structure, e.g. missing or empty batch (HTTP 400)"""

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    """Requested resource does not exist (HTTP 404)"""

    # Storage errors (5xx)
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    """Log directory or file cannot be created, opened or written (HTTP 503)"""

    # Internal errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.STORAGE_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
