# src/taskdeck/core/errors.py

from __future__ import annotations


class TaskdeckError(Exception):
    """Base class for errors the presentation layer is expected to show."""


class RemoteError(TaskdeckError):
    """
    A remote collection call did not succeed.

    Covers transport failures, non-2xx responses and payloads that could not
    be decoded. `operation` names the attempted call (e.g. "update_task").
    """

    def __init__(
        self,
        operation: str,
        cause: BaseException | str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.cause = cause
        self.status_code = status_code
        detail = f"HTTP {status_code}: {cause}" if status_code is not None else str(cause)
        super().__init__(f"{operation} failed: {detail}")


class ValidationError(TaskdeckError, ValueError):
    """Caller-side input check that failed before any remote call was made."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)
