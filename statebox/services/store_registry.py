"""Store Registry — explicit owner of every long-lived container in a process.

Invariants:
    - One container per name; re-registering a name raises StoreConflictError
    - close() closes every container in registration order, then forgets them
    - A closed registry accepts no new containers

Design Decisions:
    - Registry instance over module-level singletons: the application lifespan
      constructs it once and hands it out by reference (app.state.registry)
"""

import logging
from typing import Any, TypeVar

from statebox.core.domain_types import StoreName
from statebox.core.errors import ResourceNotFoundError, StoreConflictError
from statebox.core.state_container import StateContainer

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=StateContainer)


class StoreRegistry:
    """Named containers with an explicit teardown."""

    def __init__(self):
        self._stores: dict[StoreName, StateContainer[Any]] = {}
        self._closed = False

    def register(self, store: C, name: str | None = None) -> C:
        if self._closed:
            raise RuntimeError("Store registry is closed")
        key = StoreName(name or store.name)
        if key in self._stores:
            raise StoreConflictError(key)
        self._stores[key] = store
        logger.info(f"Registered store {key}", extra={"store": key})
        return store

    def get(self, name: str) -> StateContainer[Any]:
        store = self._stores.get(StoreName(name))
        if store is None:
            raise ResourceNotFoundError("Store", name)
        return store

    def names(self) -> list[StoreName]:
        return list(self._stores)

    def __contains__(self, name: object) -> bool:
        return name in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        stores, self._stores = self._stores, {}
        for store in stores.values():
            store.close()
        logger.info(f"Store registry closed ({len(stores)} store(s))")
