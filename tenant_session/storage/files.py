"""
File-backed stores.

``FileSecretStore`` keeps every secret AES-GCM sealed inside one orjson
document; ``FileStateStore`` keeps plain process-wide state. Both replace
their file atomically, so a failed write leaves the previous content intact.
Concurrent writers from other processes are not coordinated: the last
write wins.

Security Note:
    Never log plaintext or ciphertext values. Only log entry names,
    operations and key versions.
"""
import os
import asyncio
import base64
import logging
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import orjson
from cryptography.exceptions import InvalidTag

from ..conf import load_master_keys, get_active_key_id
from ..exceptions import SecretStoreError
from .abstract import SecretStore, StateStore
from .crypto import decrypt, encrypt, key_version

logger = logging.getLogger("tenant_session.storage")

_FORMAT_VERSION = 1


class CorruptDocument(SecretStoreError):
    """The store file exists but is not a readable document."""


def _read_document(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return {}
    if not raw.strip():
        return {}
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as err:
        raise CorruptDocument(f"{path} is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise CorruptDocument(f"{path} does not hold a JSON object")
    return data


def _atomic_write(path: Path, payload: bytes) -> None:
    """Write ``payload`` to a sibling temp file, then rename it over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class FileSecretStore(SecretStore):
    """Encrypted key -> string store persisted to a single file.

    Document layout::

        {"version": 1, "secrets": {"<name>": "<base64 [key_id|nonce|ct]>"}}
    """

    def __init__(
        self,
        path: Union[str, Path],
        master_keys: Optional[dict[int, bytes]] = None,
        active_key_id: Optional[int] = None,
    ) -> None:
        self._path = Path(path)
        # master keys are loaded on first use, so opening the store
        # needs no key material
        self._master_keys = master_keys
        self._active_key_id = active_key_id
        if master_keys is not None and active_key_id is not None:
            self._check_active_key()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def active_key_id(self) -> int:
        self._keys()
        return self._active_key_id

    def _check_active_key(self) -> None:
        if self._active_key_id not in self._master_keys:
            raise KeyError(
                f"Active key version {self._active_key_id} not found in "
                f"master keys (available: {sorted(self._master_keys)})"
            )

    def _keys(self) -> dict[int, bytes]:
        """Return the master keys, loading them from the environment once.

        Raises:
            SecretStoreError: If no usable key material is configured.
        """
        if self._master_keys is None or self._active_key_id is None:
            try:
                master_keys = self._master_keys
                if master_keys is None:
                    master_keys = load_master_keys()
                active_key_id = self._active_key_id
                if active_key_id is None:
                    active_key_id = get_active_key_id()
                if active_key_id not in master_keys:
                    raise KeyError(
                        f"Active key version {active_key_id} not found in "
                        f"master keys (available: {sorted(master_keys)})"
                    )
            except (RuntimeError, ValueError, KeyError) as err:
                raise SecretStoreError(f"Secret store keys unavailable: {err}") from err
            self._master_keys = master_keys
            self._active_key_id = active_key_id
        return self._master_keys

    def _load(self) -> dict[str, Any]:
        document = _read_document(self._path)
        secrets = document.get("secrets", {})
        if not isinstance(secrets, dict):
            raise CorruptDocument(f"{self._path} has no secrets mapping")
        return secrets

    def _dump(self, secrets: dict[str, Any]) -> None:
        document = {"version": _FORMAT_VERSION, "secrets": secrets}
        _atomic_write(self._path, orjson.dumps(document))

    def _read(self, key: str) -> Optional[str]:
        try:
            secrets = self._load()
        except OSError as err:
            raise SecretStoreError(f"Secret store unreadable: {err}") from err
        sealed = secrets.get(key)
        if sealed is None:
            return None
        if not isinstance(sealed, str):
            raise SecretStoreError(f"Secret {key} is not a sealed string")
        master_keys = self._keys()
        try:
            plaintext = decrypt(base64.b64decode(sealed), master_keys, key)
        except (ValueError, KeyError, InvalidTag) as err:
            logger.error("Failed to decrypt secret %s: %s", key, type(err).__name__)
            raise SecretStoreError(
                f"Secret {key} cannot be decrypted ({type(err).__name__})"
            ) from err
        return plaintext.decode("utf-8")

    def _write(self, key: str, value: str) -> bool:
        try:
            secrets = self._load()
        except (CorruptDocument, OSError) as err:
            # refuse to clobber other entries of an unreadable file
            logger.error("Refusing to overwrite unreadable secret store: %s", err)
            return False
        master_keys = self._keys()
        sealed = encrypt(
            value.encode("utf-8"),
            self._active_key_id,
            master_keys[self._active_key_id],
            key,
        )
        secrets[key] = base64.b64encode(sealed).decode("ascii")
        try:
            self._dump(secrets)
        except OSError as err:
            logger.error("Failed to store secret %s: %s", key, err)
            return False
        logger.debug("Secret %s stored (key v%d)", key, self._active_key_id)
        return True

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> bool:
        return await asyncio.to_thread(self._write, key, value)

    def _rekey(self, new_key_id: int) -> dict:
        master_keys = self._keys()
        if new_key_id not in master_keys:
            raise KeyError(
                f"New key version {new_key_id} not found in master_keys"
            )
        secrets = self._load()
        new_master_key = master_keys[new_key_id]
        stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}
        logger.info("Starting secret store re-key to v%d", new_key_id)
        for name, sealed in list(secrets.items()):
            stats["total"] += 1
            try:
                ciphertext = base64.b64decode(sealed)
                if key_version(ciphertext) == new_key_id:
                    stats["skipped"] += 1
                    continue
                plaintext = decrypt(ciphertext, master_keys, name)
                secrets[name] = base64.b64encode(
                    encrypt(plaintext, new_key_id, new_master_key, name)
                ).decode("ascii")
                stats["rotated"] += 1
            except (TypeError, ValueError, KeyError, InvalidTag) as err:
                logger.error(
                    "Error re-keying secret %s: %s", name, type(err).__name__,
                )
                stats["errors"] += 1
        if stats["rotated"]:
            self._dump(secrets)
        self._active_key_id = new_key_id
        logger.info("Secret store re-key complete: %s", stats)
        return stats

    async def rekey(self, new_key_id: int) -> dict:
        """Re-encrypt every entry under master key version ``new_key_id``.

        Entries already sealed with ``new_key_id`` are skipped, so running
        it twice is harmless. New writes use ``new_key_id`` afterwards.

        Returns:
            Stats dict with keys: total, rotated, errors, skipped.

        Raises:
            KeyError: If new_key_id is not in the loaded master keys.
            CorruptDocument: If the store file cannot be read.
            SecretStoreError: If no master keys are configured.
        """
        return await asyncio.to_thread(self._rekey, new_key_id)


class FileStateStore(StateStore):
    """Plain JSON document of process-wide state slots."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self, key: str) -> Optional[str]:
        try:
            value = _read_document(self._path).get(key)
        except (CorruptDocument, OSError) as err:
            logger.error("State file unreadable: %s", err)
            return None
        return value if isinstance(value, str) else None

    def _write(self, key: str, value: str) -> bool:
        try:
            document = _read_document(self._path)
        except CorruptDocument:
            logger.warning("Replacing unreadable state file %s", self._path)
            document = {}
        except OSError as err:
            logger.error("Failed to read state %s: %s", self._path, err)
            return False
        document[key] = value
        try:
            _atomic_write(self._path, orjson.dumps(document, option=orjson.OPT_INDENT_2))
        except OSError as err:
            logger.error("Failed to update state %s: %s", key, err)
            return False
        return True

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def update(self, key: str, value: str) -> bool:
        return await asyncio.to_thread(self._write, key, value)
