"""Tenant Session exceptions."""
from typing import Optional


class SessionError(Exception):
    """Base class for every session-record error."""


class DecodeFailure(SessionError):
    """Stored session data is present but cannot be parsed."""


class ValidationRejected(SessionError):
    """A user-supplied field value failed a validation rule."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field} {reason}")


class PersistenceFailure(SessionError):
    """The secret store refused to write the encoded session record."""

    def __init__(self, key: str, message: Optional[str] = None) -> None:
        self.key = key
        super().__init__(message or f"Failed to store secret {key}")


class SecretStoreError(SessionError):
    """A stored secret exists but cannot be read back.

    Raised instead of reporting the entry as absent, so callers never
    mistake an unreadable record for "no session yet" and overwrite it.
    """


class RotationFailure(SessionError):
    """Generating or writing a new device identifier failed."""
