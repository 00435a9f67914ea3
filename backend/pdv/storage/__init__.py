from .base import StorageBackend
from .memory import InMemoryBackend
from .persistent import PersistentBackend
from .router import StorageRouter, get_storage

__all__ = ["StorageBackend", "InMemoryBackend", "PersistentBackend", "StorageRouter", "get_storage"]
