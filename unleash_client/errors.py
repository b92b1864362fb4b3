"""Error codes and exceptions for the toggle client.

Refresh cycles convert these into a fallback decision; none of them is ever
raised out of toggle evaluation.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"  # Transport failure or non-2xx response
    PARSE_FAILED = "PARSE_FAILED"  # Payload is not valid toggle JSON
    BACKUP_UNAVAILABLE = "BACKUP_UNAVAILABLE"  # No backup data to fall back on


class UnleashError(Exception):
    """Base exception for the toggle client."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.code.value}] {message}")


class TransportError(UnleashError):
    """Raised when the feature endpoint cannot be reached or answers non-2xx."""

    code = ErrorCode.NETWORK_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DecodeError(UnleashError):
    """Raised when a payload cannot be decoded into a toggle snapshot."""

    code = ErrorCode.PARSE_FAILED


class BackupUnavailable(UnleashError):
    """Raised when no backup payload can be read."""

    code = ErrorCode.BACKUP_UNAVAILABLE


__all__ = [
    "ErrorCode",
    "UnleashError",
    "TransportError",
    "DecodeError",
    "BackupUnavailable",
]
