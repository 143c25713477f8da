from __future__ import annotations

from enum import Enum
from typing import Generic, Optional, TypeVar

from app.core.exceptions import ServiceNotReadyError

T = TypeVar("T")


class ClientState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class ClientLifecycle(Generic[T]):
    """Two-state holder for a client that needs a one-time initialization.

    The client is only handed out once it has been marked ready; callers that
    arrive earlier get a ServiceNotReadyError.
    """

    def __init__(self) -> None:
        self._client: Optional[T] = None
        self._state = ClientState.UNINITIALIZED

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ClientState.READY

    def mark_ready(self, client: T) -> None:
        self._client = client
        self._state = ClientState.READY

    def require(self) -> T:
        if self._state is not ClientState.READY or self._client is None:
            raise ServiceNotReadyError()
        return self._client

    def reset(self) -> None:
        self._client = None
        self._state = ClientState.UNINITIALIZED
