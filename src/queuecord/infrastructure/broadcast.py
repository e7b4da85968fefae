"""Latest-value broadcast with cancellable async subscriptions."""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """One subscriber's view of a Broadcast: an async iterator of values.

    Use as an async context manager so close() runs on every exit path.
    """

    def __init__(self, owner: Broadcast[T]) -> None:
        self._owner = owner
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    def _push(self, value: T) -> None:
        if not self._closed:
            self._queue.put_nowait(value)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        self._owner._unsubscribe(self)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.close()


class Broadcast(Generic[T]):
    """Fans a value stream out to subscribers.

    New subscribers receive the latest value immediately. Consecutive equal
    values are published once.
    """

    def __init__(
        self,
        on_first_subscriber: Callable[[], None] | None = None,
        on_last_unsubscribed: Callable[[], None] | None = None,
    ) -> None:
        self._subscribers: list[Subscription[T]] = []
        self._latest: T | None = None
        self._has_value = False
        self._on_first = on_first_subscriber
        self._on_last = on_last_unsubscribed

    @property
    def latest(self) -> T | None:
        return self._latest

    def subscribe(self) -> Subscription[T]:
        sub: Subscription[T] = Subscription(self)
        self._subscribers.append(sub)
        if self._has_value:
            sub._push(self._latest)  # type: ignore[arg-type]
        if len(self._subscribers) == 1 and self._on_first:
            self._on_first()
        return sub

    def publish(self, value: T) -> bool:
        """Publish value to all subscribers. Returns False if it equals the latest value."""
        if self._has_value and value == self._latest:
            return False
        self._latest = value
        self._has_value = True
        for sub in list(self._subscribers):
            sub._push(value)
        return True

    def close_all(self) -> None:
        for sub in list(self._subscribers):
            sub.close()

    def _unsubscribe(self, sub: Subscription[T]) -> None:
        if sub not in self._subscribers:
            return
        self._subscribers.remove(sub)
        if not self._subscribers and self._on_last:
            self._on_last()
