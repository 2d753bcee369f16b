"""
Session Merge — field-level updates of a session record.

Both merges are pure: they return a new record and never touch the input,
the secret store, or the validators. Required fields missing from the
current record are backfilled with defaults, so a merged record is always
complete.
"""
from collections.abc import Sequence
from typing import Optional

from .conf import DEFAULT_SCOPES, DEFAULT_TENANT_URL
from .record import SessionRecord


def _backfill_scopes(
    current: SessionRecord,
    default_scopes: Sequence[str],
) -> list[str]:
    # an empty list is a stored value, only None is missing
    if current.scopes is None:
        return list(default_scopes)
    return list(current.scopes)


def merge_access_token(
    current: SessionRecord,
    token: str,
    default_tenant_url: str = DEFAULT_TENANT_URL,
    default_scopes: Optional[Sequence[str]] = None,
) -> SessionRecord:
    """Replace the access token, keeping the tenant URL and scopes.

    Args:
        current: Record currently stored (possibly empty).
        token: New access token.
        default_tenant_url: Used when the record has no tenant URL.
        default_scopes: Used when the record has no scopes.

    Returns:
        A complete SessionRecord.
    """
    tenant_url = current.tenant_url or default_tenant_url
    return current.model_copy(
        update={
            "access_token": token,
            "tenant_url": tenant_url,
            "scopes": _backfill_scopes(current, default_scopes or DEFAULT_SCOPES),
        }
    )


def merge_full(
    current: SessionRecord,
    tenant_url: str,
    token: str,
    default_scopes: Optional[Sequence[str]] = None,
) -> SessionRecord:
    """Replace both the tenant URL and the access token, keeping scopes.

    Args:
        current: Record currently stored (possibly empty).
        tenant_url: New tenant endpoint.
        token: New access token.
        default_scopes: Used when the record has no scopes.

    Returns:
        A complete SessionRecord.
    """
    return current.model_copy(
        update={
            "access_token": token,
            "tenant_url": tenant_url,
            "scopes": _backfill_scopes(current, default_scopes or DEFAULT_SCOPES),
        }
    )
