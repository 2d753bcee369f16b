"""Display helpers; nothing here changes what is persisted."""
from typing import Optional

from .record import SessionRecord

NOT_SET = "not set"
ELLIPSIS = "..."
TOKEN_PROMPT = "enter a new accessToken..."

_VISIBLE = 8


def mask(secret: Optional[str]) -> str:
    """Return a display-safe form of ``secret``.

    Secrets longer than 16 characters keep their first and last 8
    characters. Shorter secrets are shown as-is.
    """
    if not secret:
        return NOT_SET
    if len(secret) > 2 * _VISIBLE:
        return f"{secret[:_VISIBLE]}{ELLIPSIS}{secret[-_VISIBLE:]}"
    return secret


def summary(record: SessionRecord) -> str:
    return (
        f"accessToken: {mask(record.access_token)}\n"
        f"tenantURL: {record.tenant_url or NOT_SET}"
    )


def placeholder(record: SessionRecord) -> str:
    """Prompt hint showing the masked current token, if any."""
    if record.access_token:
        return f"current: {mask(record.access_token)}"
    return TOKEN_PROMPT
