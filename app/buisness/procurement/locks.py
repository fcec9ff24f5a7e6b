"""
In-process keyed locks guarding basket merges and transitions.

One lock per key, created lazily. The database unique indexes remain the
cross-process guard; these locks keep writers in one process from racing
each other and let readers ask whether a basket is mid-merge.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLockRegistry:
    """Registry of named locks, shared per process"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def is_held(self, key: Hashable) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()


def merge_key(supplier_id: str) -> tuple:
    """Key held while dispatch finds/creates and fills a supplier's OPEN basket"""
    return ('supplier_basket', supplier_id)


def order_key(order_id: int) -> tuple:
    """Key held while a basket status transition is applied"""
    return ('supplier_order', order_id)


basket_locks = KeyedLockRegistry()
