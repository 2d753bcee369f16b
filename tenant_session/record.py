"""
Session Record — the persisted credential bundle and its wire codec.

The secret store holds the record as a compact JSON object::

    {"accessToken":"...","tenantURL":"https://...","scopes":["email"]}

Every field is independently optional. ``decode`` is the only place where
external data is trusted or rejected; malformed data is treated as "no
session yet" instead of an error. A decoded record remembers the key order
and the explicit nulls of its source, so re-encoding an untouched record
reproduces it byte for byte. Unknown keys are not carried over.
"""
import logging
from typing import Any, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .exceptions import DecodeFailure

logger = logging.getLogger("tenant_session")


class SessionRecord(BaseModel):
    """Access token, tenant endpoint and scopes of the active session."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    access_token: Optional[str] = Field(default=None, alias="accessToken")
    tenant_url: Optional[str] = Field(default=None, alias="tenantURL")
    scopes: Optional[list[str]] = Field(default=None)

    # wire layout of the source document, set by parse()
    _wire_order: tuple[str, ...] = PrivateAttr(default=())
    _nulls: frozenset[str] = PrivateAttr(default_factory=frozenset)

    @property
    def empty(self) -> bool:
        return (
            self.access_token is None
            and self.tenant_url is None
            and self.scopes is None
        )

    @property
    def complete(self) -> bool:
        """True when all three fields are populated."""
        return bool(self.access_token) and bool(self.tenant_url) and self.scopes is not None

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping (camelCase keys, absent fields omitted).

        Keys come out in the order they were decoded in, followed by any
        newly set ones in declaration order. A field that was an explicit
        null on the wire and is still unset stays null.
        """
        values = self.model_dump(by_alias=True)
        order = list(self._wire_order)
        order += [key for key in values if key not in order]
        return {
            key: values[key]
            for key in order
            if values[key] is not None or key in self._nulls
        }


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

# accepted input key -> wire key
_WIRE_KEYS = {
    **{name: info.alias or name for name, info in SessionRecord.model_fields.items()},
    **{info.alias: info.alias for info in SessionRecord.model_fields.values() if info.alias},
}


def parse(raw: str) -> SessionRecord:
    """Strictly parse a stored session string.

    Args:
        raw: JSON text read from the secret store.

    Returns:
        Decoded SessionRecord; missing fields stay absent.

    Raises:
        DecodeFailure: If ``raw`` is not a JSON object with well-typed fields.
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as err:
        raise DecodeFailure(f"Session data is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise DecodeFailure(
            f"Session data must be a JSON object, got {type(data).__name__}"
        )
    try:
        record = SessionRecord.model_validate(data)
    except ValidationError as err:
        raise DecodeFailure(
            f"Session data has invalid fields: {err.error_count()} error(s)"
        ) from err
    known = [key for key in data if key in _WIRE_KEYS]
    record._wire_order = tuple(_WIRE_KEYS[key] for key in known)
    record._nulls = frozenset(_WIRE_KEYS[key] for key in known if data[key] is None)
    return record


def decode(raw: Optional[str]) -> tuple[SessionRecord, bool]:
    """Decode a stored session string, never raising.

    Args:
        raw: JSON text from the secret store, or None when nothing is stored.

    Returns:
        Tuple of (record, was_valid). An absent or malformed value yields an
        empty record and ``was_valid=False``.
    """
    if raw is None:
        return SessionRecord(), False
    try:
        return parse(raw), True
    except DecodeFailure as err:
        logger.warning("Failed to parse existing session data, starting fresh: %s", err)
        return SessionRecord(), False


def encode(record: SessionRecord) -> str:
    """Serialize a record for persistence (compact, source key order kept)."""
    return orjson.dumps(record.to_wire()).decode("utf-8")


def encode_pretty(record: SessionRecord) -> str:
    """Serialize a record for display (2-space indent, sorted keys)."""
    return orjson.dumps(
        record.to_wire(),
        option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
    ).decode("utf-8")
