"""Error taxonomy for the offline worker.

Every failure the worker expects to see is raised as ``ProcvickaError`` with
an ``ErrorCode``. HTTP error statuses are never errors here: a 404 or 500 is
a normal ``Response`` that simply does not get cached.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NETWORK_ERROR = "NETWORK_ERROR"
    PRECACHE_FAILED = "PRECACHE_FAILED"
    STORAGE_ERROR = "STORAGE_ERROR"
    INVALID_STATE = "INVALID_STATE"


class ProcvickaError(Exception):
    """Base error carrying a machine-readable code."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def __repr__(self) -> str:
        return f"ProcvickaError(code={self.code.value!r}, message={self.message!r})"
