# Overview: Chooses the persistent or in-memory backend for each storage operation.

from __future__ import annotations

from typing import Callable, TypeVar

from flask import Flask, current_app

from ..errors import StorageUnavailableError
from .base import StorageBackend

T = TypeVar("T")

EXTENSION_KEY = "pdv_storage"


class StorageRouter:
    """
    Single decision point between the two backends.

    `is_available()` on the persistent backend is evaluated on every call,
    never cached: when the database comes back, later operations go to it
    again. Data already written to the fallback store is not migrated.
    """

    def __init__(self, persistent: StorageBackend, memory: StorageBackend):
        self.persistent = persistent
        self.memory = memory

    def init_app(self, app: Flask) -> None:
        app.extensions[EXTENSION_KEY] = self

    def select(self) -> StorageBackend:
        if self.persistent.is_available():
            return self.persistent
        current_app.logger.warning("Persistent storage unavailable; using in-memory store")
        return self.memory

    def run(self, operation: Callable[[StorageBackend], T]) -> T:
        """
        Run operation(backend) on the persistent backend when available.

        A connection-level failure during the operation (StorageUnavailableError)
        reruns it against the in-memory store. Every other error propagates.
        """
        backend = self.select()
        if backend is self.memory:
            return operation(self.memory)

        try:
            return operation(backend)
        except StorageUnavailableError:
            current_app.logger.warning(
                "Persistent storage failed mid-operation; retrying on in-memory store",
                exc_info=True,
            )
            return operation(self.memory)


def get_storage() -> StorageRouter:
    """The router injected into the current app by create_app()."""
    return current_app.extensions[EXTENSION_KEY]
