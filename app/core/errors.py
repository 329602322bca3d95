# /app/core/errors.py

"""
Error taxonomy for the workbench.

Slot-level errors (MissingCredentialError, TransportError) are caught by the
completion client and reported as an errored outcome for that slot only.
PersistenceError wraps store failures; callers log it and carry on.
Cancellation is deliberately absent: an aborted stream is a normal outcome.
"""

from typing import Optional


class WorkbenchError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class MissingCredentialError(WorkbenchError):
    def __init__(self, message: str = "Missing API Key. Please configure it in settings."):
        super().__init__(message)


class TransportError(WorkbenchError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(WorkbenchError):
    pass
