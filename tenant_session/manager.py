"""
SessionManager — read, update and persist the session record.

Provides the operations the presentation layer calls into:
- ``get_session()`` — fetch and decode the stored record
- ``update_access_token(token)`` — replace only the access token
- ``update_session(tenant_url, token)`` — replace tenant URL and token
- ``rotate_device_id()`` — replace the device identifier

Each operation validates its inputs, reads the record fresh from the secret
store (there is no cache), merges, and writes the result back. Every
operation returns an ``Outcome``; an operation that fails writes nothing.

Security Note:
    Never log token values. Only log key names and operations.
"""
import logging
from typing import Optional

from pydantic import BaseModel

from . import device
from .conf import SessionConfig
from .exceptions import (
    PersistenceFailure,
    RotationFailure,
    SecretStoreError,
    ValidationRejected,
)
from .merge import merge_access_token, merge_full
from .record import SessionRecord, decode, encode
from .storage import SecretStore, StateStore
from .validators import validate_token, validate_url

logger = logging.getLogger("tenant_session")


class Outcome(BaseModel):
    """Success/failure result of a manager operation."""

    success: bool
    error: Optional[str] = None
    record: Optional[SessionRecord] = None
    value: Optional[str] = None
    reload_required: bool = False

    @classmethod
    def ok(cls, **kwargs) -> "Outcome":
        return cls(success=True, **kwargs)

    @classmethod
    def fail(cls, error: str) -> "Outcome":
        return cls(success=False, error=error)


class SessionManager:
    """Session-record operations bound to a secret store and a state store."""

    def __init__(
        self,
        secrets: SecretStore,
        state: StateStore,
        config: Optional[SessionConfig] = None,
    ):
        self._secrets = secrets
        self._state = state
        self._config = config or SessionConfig()

    @property
    def config(self) -> SessionConfig:
        return self._config

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    async def load(self) -> tuple[SessionRecord, bool]:
        """Read the stored record; absent or malformed data yields an empty one.

        Raises:
            SecretStoreError: If a stored record exists but cannot be read.
        """
        raw = await self._secrets.get(self._config.sessions_key)
        return decode(raw)

    async def _persist(self, record: SessionRecord) -> None:
        key = self._config.sessions_key
        try:
            stored = await self._secrets.set(key, encode(record))
        except (OSError, SecretStoreError) as err:
            raise PersistenceFailure(key, f"Failed to store secret {key}: {err}") from err
        if not stored:
            raise PersistenceFailure(key)
        logger.debug("Secret %s stored successfully", key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_session(self) -> Outcome:
        try:
            raw = await self._secrets.get(self._config.sessions_key)
        except SecretStoreError as err:
            logger.error("Failed to read session data: %s", err)
            return Outcome.fail(str(err))
        if raw is None:
            return Outcome.fail("no session data found")
        record, valid = decode(raw)
        if not valid:
            return Outcome.fail("could not parse session data")
        return Outcome.ok(record=record)

    async def update_access_token(self, token: str) -> Outcome:
        """Validate and store a new access token, keeping the other fields.

        Args:
            token: New access token as typed by the user.

        Returns:
            Outcome carrying the stored record on success.
        """
        try:
            validate_token(token).raise_for_rejection()
            current, _ = await self.load()
            merged = merge_access_token(
                current,
                token.strip(),
                default_tenant_url=self._config.default_tenant_url,
                default_scopes=self._config.default_scopes,
            )
            await self._persist(merged)
        except ValidationRejected as err:
            return Outcome.fail(str(err))
        except SecretStoreError as err:
            # an unreadable record is never replaced by a fresh one
            logger.error("Refusing to update unreadable session data: %s", err)
            return Outcome.fail(str(err))
        except PersistenceFailure as err:
            logger.error("Failed to update access token: %s", err)
            return Outcome.fail(str(err))
        logger.info("AccessToken updated successfully")
        return Outcome.ok(record=merged)

    async def update_session(self, tenant_url: str, token: str) -> Outcome:
        """Validate and store a new tenant URL and access token together.

        Args:
            tenant_url: New tenant endpoint.
            token: New access token.

        Returns:
            Outcome carrying the stored record on success.
        """
        try:
            validate_url(tenant_url).raise_for_rejection()
            validate_token(token).raise_for_rejection()
            current, _ = await self.load()
            merged = merge_full(
                current,
                tenant_url.strip(),
                token.strip(),
                default_scopes=self._config.default_scopes,
            )
            await self._persist(merged)
        except ValidationRejected as err:
            return Outcome.fail(str(err))
        except SecretStoreError as err:
            # an unreadable record is never replaced by a fresh one
            logger.error("Refusing to update unreadable session data: %s", err)
            return Outcome.fail(str(err))
        except PersistenceFailure as err:
            logger.error("Failed to update sessions data: %s", err)
            return Outcome.fail(str(err))
        logger.info("Sessions data updated successfully")
        return Outcome.ok(record=merged)

    async def device_id(self) -> Optional[str]:
        return await device.current(self._state, self._config.device_id_key)

    async def rotate_device_id(self) -> Outcome:
        """Replace the device identifier; the caller should prompt a reload."""
        try:
            identifier = await device.rotate(self._state, self._config.device_id_key)
        except RotationFailure as err:
            logger.error("Failed to rotate device identifier: %s", err)
            return Outcome.fail(str(err))
        return Outcome.ok(value=identifier, reload_required=True)
