"""Storage contracts consumed by the session manager."""
from abc import ABC, abstractmethod
from typing import Optional


class SecretStore(ABC):
    """Opaque key -> string persistent store for secret values.

    ``get`` returns None only when nothing is stored; an entry that exists
    but cannot be read raises ``SecretStoreError``. ``set`` reports failure
    by returning False; callers must treat a False return as "nothing was
    written".
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> bool:
        pass


class StateStore(ABC):
    """Process-wide, non-secret state slots (e.g. the device identifier)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def update(self, key: str, value: str) -> bool:
        pass
