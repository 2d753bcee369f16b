"""Secret and state stores for the session manager."""

from .abstract import SecretStore, StateStore
from .memory import MemorySecretStore, MemoryStateStore
from .files import CorruptDocument, FileSecretStore, FileStateStore

__all__ = [
    "SecretStore",
    "StateStore",
    "MemorySecretStore",
    "MemoryStateStore",
    "CorruptDocument",
    "FileSecretStore",
    "FileStateStore",
]
