"""
Tenant Session Configuration — constants, master keys and validated settings.

Reads settings from environment variables:
    TENANT_SESSION_KEY = <secret-store key of the session record>
    TENANT_SESSION_DEVICE_KEY = <state slot of the device identifier>
    TENANT_SESSION_DEFAULT_URL = <tenant URL used when none is stored>
    TENANT_SESSION_HOME = <directory of the file-backed stores>

Master keys of the file secret store use the format:
    SESSION_MASTER_KEY_v{N} = <base64-encoded 32-byte key>
    SESSION_ACTIVE_KEY_ID = <integer>

Security Note:
    Never log key material. Only log key IDs and version numbers.
"""
import os
import re
import base64
import secrets
import logging
from pathlib import Path

from pydantic import (
    AnyUrl,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

logger = logging.getLogger("tenant_session")

SESSIONS_KEY = "augment.sessions"
DEVICE_ID_KEY = "sessionId"
DEFAULT_TENANT_URL = "https://d5.api.augmentcode.com/"
DEFAULT_SCOPES = ("email",)

_KEY_ENV_PATTERN = re.compile(r"^SESSION_MASTER_KEY_v(\d+)$")
_URL_ADAPTER = TypeAdapter(AnyUrl)


def load_master_keys() -> dict[int, bytes]:
    """Load master keys from SESSION_MASTER_KEY_v{N} environment variables.

    Each env var value must be base64-encoded and decode to exactly 32 bytes.

    Returns:
        Mapping of key version (int) to raw 32-byte key.

    Raises:
        RuntimeError: If no master keys are found in the environment.
        ValueError: If a key does not decode to exactly 32 bytes.
    """
    keys: dict[int, bytes] = {}
    for name, value in os.environ.items():
        match = _KEY_ENV_PATTERN.match(name)
        if match:
            version = int(match.group(1))
            key_bytes = base64.b64decode(value)
            if len(key_bytes) != 32:
                raise ValueError(
                    f"{name} must decode to exactly 32 bytes, "
                    f"got {len(key_bytes)}"
                )
            keys[version] = key_bytes
    if not keys:
        raise RuntimeError(
            "No session master keys found in environment. "
            "Set SESSION_MASTER_KEY_v1=<base64-encoded-32-byte-key>"
        )
    logger.debug("Loaded %d master key version(s): %s", len(keys), sorted(keys.keys()))
    return keys


def get_active_key_id() -> int:
    """Read the active master key version from SESSION_ACTIVE_KEY_ID.

    Falls back to version 1 when the variable is not set.

    Raises:
        ValueError: If the value is not a valid integer.
    """
    raw = os.environ.get("SESSION_ACTIVE_KEY_ID")
    if raw is None:
        return 1
    return int(raw)


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return as base64 string.

    This is a utility for operators to generate new keys.
    """
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class SessionConfig(BaseModel):
    """Validated session configuration."""

    sessions_key: str = Field(default=SESSIONS_KEY, min_length=1)
    device_id_key: str = Field(default=DEVICE_ID_KEY, min_length=1)
    default_tenant_url: str = Field(default=DEFAULT_TENANT_URL)
    default_scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".tenant_session")

    @field_validator("default_tenant_url")
    @classmethod
    def validate_tenant_url(cls, v: str) -> str:
        """Ensure the fallback tenant URL is itself well formed."""
        try:
            _URL_ADAPTER.validate_python(v)
        except ValidationError as err:
            raise ValueError(f"default_tenant_url is not a valid URL: {v!r}") from err
        return v

    @field_validator("default_scopes")
    @classmethod
    def validate_scopes(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("default_scopes must contain at least one scope")
        return v

    @property
    def secrets_path(self) -> Path:
        return self.data_dir / "secrets.json"

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state.json"

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Create SessionConfig by loading values from environment.

        Returns:
            Populated SessionConfig instance.
        """
        values: dict = {}
        env_map = {
            "sessions_key": "TENANT_SESSION_KEY",
            "device_id_key": "TENANT_SESSION_DEVICE_KEY",
            "default_tenant_url": "TENANT_SESSION_DEFAULT_URL",
            "data_dir": "TENANT_SESSION_HOME",
        }
        for field, env_name in env_map.items():
            raw = os.environ.get(env_name)
            if raw:
                values[field] = raw
        return cls(**values)
