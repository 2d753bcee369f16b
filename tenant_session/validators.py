"""
Input validation for user-supplied session fields.

These checks gate values at the input boundary only. The merge and codec
layers accept whatever they are given.
"""
from typing import Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, TypeAdapter, ValidationError

from .conf import DEFAULT_TENANT_URL
from .exceptions import ValidationRejected

MIN_TOKEN_LENGTH = 10

_URL_ADAPTER = TypeAdapter(AnyUrl)


class Validation(BaseModel):
    """Result of a field check: ``ok`` or rejected with a ``reason``."""

    model_config = ConfigDict(frozen=True)

    field: str
    ok: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_rejection(self) -> None:
        """Raise ValidationRejected when this result is a rejection."""
        if not self.ok:
            raise ValidationRejected(self.field, self.reason or "is invalid")


def _valid(field: str) -> Validation:
    return Validation(field=field, ok=True)


def _rejected(field: str, reason: str) -> Validation:
    return Validation(field=field, ok=False, reason=reason)


def validate_token(value: Optional[str]) -> Validation:
    """Check an access token: non-blank and at least 10 characters trimmed."""
    trimmed = (value or "").strip()
    if not trimmed:
        return _rejected("accessToken", "must not be empty")
    if len(trimmed) < MIN_TOKEN_LENGTH:
        return _rejected("accessToken", "too short")
    return _valid("accessToken")


def validate_url(value: Optional[str]) -> Validation:
    """Check a tenant URL: non-blank and a well-formed absolute URL."""
    trimmed = (value or "").strip()
    if not trimmed:
        return _rejected("tenantURL", "must not be empty")
    try:
        _URL_ADAPTER.validate_python(trimmed)
    except ValidationError:
        return _rejected(
            "tenantURL",
            f"must be a valid URL (for example: {DEFAULT_TENANT_URL})",
        )
    return _valid("tenantURL")
