"""Error types shared by the calculator, gravity log and sync layers.

ValidationError blocks an action before any mutation or store call.
RemoteWriteError wraps a store failure; the optimistic mirror is never rolled
back when one is raised or logged.
"""

from __future__ import annotations


class MeadPilotError(Exception):
    """Base exception carrying a stable code and the HTTP status it maps to."""

    code = "MEADPILOT_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict[str, str]:
        return {"detail": self.message, "code": self.code}


class ValidationError(MeadPilotError):
    """Input rejected before anything was mutated."""

    code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class LogEntryNotFoundError(MeadPilotError, LookupError):
    code = "LOG_ENTRY_NOT_FOUND"
    http_status = 404


class RemoteWriteError(MeadPilotError):
    """The document store rejected or failed a create, update or delete."""

    code = "REMOTE_WRITE_FAILED"
    http_status = 502

    def __init__(self, message: str, *, operation: str, path: str):
        super().__init__(message)
        self.operation = operation
        self.path = path


class BatchNotFoundError(MeadPilotError, LookupError):
    code = "BATCH_NOT_FOUND"
    http_status = 404


class FavoriteNotFoundError(MeadPilotError, LookupError):
    code = "FAVORITE_NOT_FOUND"
    http_status = 404
