from abc import ABC, abstractmethod
from typing import AsyncContextManager, Generic, List, Optional, Tuple, TypeVar

V = TypeVar("V")


class IKeyValueStore(ABC, Generic[V]):
    """Interface for the resourceId-keyed registries"""

    @abstractmethod
    async def get(self, key: str) -> Optional[V]:
        """Return the value stored under key, or None"""
        pass

    @abstractmethod
    async def set(self, key: str, value: V) -> None:
        """Store value under key, replacing any previous value"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove key; return True if something was removed"""
        pass

    @abstractmethod
    async def list(self) -> List[Tuple[str, V]]:
        """Return a snapshot of all (key, value) pairs"""
        pass

    @abstractmethod
    def lock(self, key: str) -> AsyncContextManager[None]:
        """Serialize read-modify-write sequences on a single key"""
        pass
