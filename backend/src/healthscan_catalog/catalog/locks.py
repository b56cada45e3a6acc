"""Per-category exclusive lock for mutating runs.

The lock is a sentinel record at ``lock:<category>``, outside every category
prefix. Stores offering an insert-if-absent ``add`` get an atomic acquire;
with plain get/set the acquire is write-then-confirm. A sentinel older than
the TTL belongs to a crashed run and is taken over.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from healthscan_catalog.core.exceptions import CatalogError, LockContentionError
from healthscan_catalog.store.kv_store import RecordStore

logger = logging.getLogger(__name__)

LOCK_PREFIX = "lock:"


def lock_key(category: str) -> str:
    return f"{LOCK_PREFIX}{category}"


class CategoryLock:
    def __init__(
        self,
        store: RecordStore,
        ttl_seconds: float = 900,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _is_stale(self, sentinel: Mapping[str, Any]) -> bool:
        acquired = sentinel.get("acquired_at")
        if not isinstance(acquired, (int, float)):
            return True
        return self.clock() - acquired > self.ttl_seconds

    def acquire(self, category: str, operation: str, actor: Optional[str] = None) -> str:
        key = lock_key(category)
        existing = self.store.get(key)
        if existing:
            if not self._is_stale(existing):
                raise LockContentionError(category, operation, existing.get("operation"))
            logger.warning("Taking over stale %s lock on '%s' held by %s",
                           existing.get("operation"), category, existing.get("actor"))
            self.store.delete(key)

        token = uuid.uuid4().hex
        sentinel: Dict[str, Any] = {
            "token": token,
            "operation": operation,
            "actor": actor,
            "acquired_at": self.clock(),
        }
        add = getattr(self.store, "add", None)
        if callable(add):
            if not add(key, sentinel):
                current = self.store.get(key) or {}
                raise LockContentionError(category, operation, current.get("operation"))
        else:
            self.store.set(key, sentinel)
            current = self.store.get(key) or {}
            if current.get("token") != token:
                raise LockContentionError(category, operation, current.get("operation"))
        logger.info("Acquired %s lock on '%s' for %s", operation, category, actor or "unknown")
        return token

    def release(self, category: str, token: str) -> None:
        key = lock_key(category)
        current = self.store.get(key)
        if current and current.get("token") == token:
            self.store.delete(key)

    @contextmanager
    def hold(self, category: str, operation: str, actor: Optional[str] = None) -> Iterator[str]:
        token = self.acquire(category, operation, actor)
        try:
            yield token
        finally:
            try:
                self.release(category, token)
            except CatalogError as exc:
                # The sentinel expires after the TTL; do not mask the run's outcome.
                logger.error("Could not release %s lock on '%s': %s", operation, category, exc)

    def is_locked(self, category: str) -> bool:
        sentinel = self.store.get(lock_key(category))
        return bool(sentinel) and not self._is_stale(sentinel)
