"""Tenant Session — single credential session record kept in a secret store.

Security Note (Threat Model):
    The session record is stored as plain JSON inside the secret store;
    confidentiality is the store's responsibility. ``FileSecretStore``
    seals entries at rest, but decrypted tokens live in process memory
    while an operation runs. This is an accepted limitation.
"""

from .version import __version__
from .conf import SessionConfig, DEFAULT_TENANT_URL, DEFAULT_SCOPES
from .exceptions import (
    SessionError,
    DecodeFailure,
    ValidationRejected,
    PersistenceFailure,
    SecretStoreError,
    RotationFailure,
)
from .record import SessionRecord, decode, encode, encode_pretty
from .merge import merge_access_token, merge_full
from .validators import Validation, validate_token, validate_url
from .presenter import mask, NOT_SET
from .device import rotate
from .manager import Outcome, SessionManager

__all__ = [
    "__version__",
    "SessionConfig",
    "DEFAULT_TENANT_URL",
    "DEFAULT_SCOPES",
    "SessionError",
    "DecodeFailure",
    "ValidationRejected",
    "PersistenceFailure",
    "SecretStoreError",
    "RotationFailure",
    "SessionRecord",
    "decode",
    "encode",
    "encode_pretty",
    "merge_access_token",
    "merge_full",
    "Validation",
    "validate_token",
    "validate_url",
    "mask",
    "NOT_SET",
    "rotate",
    "Outcome",
    "SessionManager",
]
