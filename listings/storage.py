"""
Storage facade that routes every call to MongoDB or the in-memory store.

The choice is made per call from a connection-health provider. Nothing is
copied between the two backends, so records written while MongoDB was down
are not visible once it comes back, and the other way round.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from listings.db import MemStorage, PropertyRecord, StorageBackend, UserRecord
from listings.schemas import (
    validate_insert_property,
    validate_insert_user,
    validate_property_update,
)

logger = logging.getLogger(__name__)


def _never_ready() -> bool:
    return False


class HybridStorage:
    def __init__(
        self,
        memory: MemStorage,
        persistent: Optional[StorageBackend] = None,
        is_persistent_ready: Callable[[], bool] = _never_ready,
    ):
        self.memory = memory
        self.persistent = persistent
        self._is_persistent_ready = is_persistent_ready
        self._last_backend: Optional[str] = None

    @property
    def active(self) -> StorageBackend:
        backend: StorageBackend = self.memory
        if self.persistent is not None and self._is_persistent_ready():
            backend = self.persistent
        if backend.name != self._last_backend:
            if self._last_backend is not None:
                logger.warning(
                    "Storage switched from %s to %s", self._last_backend, backend.name
                )
            self._last_backend = backend.name
        return backend

    def active_backend_name(self) -> str:
        return self.active.name

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.active.get_user(user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self.active.get_user_by_username(username)

    def create_user(self, payload: Any) -> UserRecord:
        insert_user = validate_insert_user(payload).raise_for_errors()
        return self.active.create_user(insert_user)

    def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        return self.active.get_property(property_id)

    def list_properties(self) -> list[PropertyRecord]:
        return self.active.list_properties()

    def create_property(self, payload: Any) -> PropertyRecord:
        insert_property = validate_insert_property(payload).raise_for_errors()
        return self.active.create_property(insert_property)

    def update_property(
        self, property_id: str, changes: Any
    ) -> Optional[PropertyRecord]:
        update = validate_property_update(changes).raise_for_errors()
        return self.active.update_property(property_id, update.changes())

    def delete_property(self, property_id: str) -> bool:
        return self.active.delete_property(property_id)
