"""In-memory stores, used by tests and when embedding the manager."""
import logging
from typing import Optional

from .abstract import SecretStore, StateStore

logger = logging.getLogger("tenant_session.storage")


class MemorySecretStore(SecretStore):
    def __init__(self, data: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        logger.debug("Secret %s stored in memory", key)
        return True


class MemoryStateStore(StateStore):
    def __init__(self, data: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def update(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True
