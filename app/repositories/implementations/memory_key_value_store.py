from __future__ import annotations

import asyncio
import copy
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple, TypeVar

from app.repositories.interfaces.key_value_store import IKeyValueStore

V = TypeVar("V")


class InMemoryKeyValueStore(IKeyValueStore[V]):
    """Process-local store; contents are lost on restart.

    - Values are deep-copied on the way in and out so callers never share
      mutable state with the store.
    - One asyncio.Lock per key; different keys never wait on each other. A
      lock only lives while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._data: Dict[str, V] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def get(self, key: str) -> Optional[V]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: V) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def list(self) -> List[Tuple[str, V]]:
        return [(k, copy.deepcopy(v)) for k, v in self._data.items()]

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        key_lock = self._locks.get(key)
        if key_lock is None:
            key_lock = asyncio.Lock()
            self._locks[key] = key_lock
        async with key_lock:
            yield

    def clear_all(self) -> None:
        self._data.clear()
        self._locks.clear()
