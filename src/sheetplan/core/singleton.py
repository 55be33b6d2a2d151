"""
Shared asynchronous resources.

A SharedResource wraps a factory that produces a value asynchronously (for
example the loaded Google API client) and hands that value to any number of
subscribers. Subscribing drives the factory on demand; reading never does.
The factory receives an ``update`` callable it may use to push newer values
to every subscriber after the initial resolution.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar

from ..utils.aio import LazyFuture

logger = logging.getLogger(__name__)

T = TypeVar("T")

Update = Callable[[T], None]
Factory = Callable[[Update], Awaitable[T]]

_UNSET = object()


class _Subscription(Generic[T]):
    __slots__ = ("callback", "last_delivered")

    def __init__(self, callback: Callable[[T], None]) -> None:
        self.callback = callback
        self.last_delivered: object = _UNSET


class SharedResource(Generic[T]):
    """
    Lazily produced value shared by many call sites.

    Usage:
        api = SharedResource(lambda update: load_google_api(options), name="api")

        unsubscribe = api.subscribe(render)   # starts loading
        api.read()                            # None until loaded
        handle = await api.resolve()
    """

    def __init__(self, factory: Factory, name: Optional[str] = None) -> None:
        self.name = name or getattr(factory, "__name__", "resource")
        self._factory = factory
        self._value: object = _UNSET
        self._subscriptions: Dict[object, _Subscription] = {}
        self.resolution: LazyFuture[T] = LazyFuture(self._produce)

    async def _produce(self) -> T:
        try:
            value = await self._factory(self._update_all)
        except Exception:
            logger.error(
                "Failed to retrieve initial value for %s", self.name, exc_info=True
            )
            raise
        self._update_all(value)
        return value

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    def read(self) -> Optional[T]:
        """Current value, or None while unresolved. Never starts the factory."""
        if self._value is _UNSET:
            return None
        return self._value  # type: ignore[return-value]

    async def resolve(self) -> T:
        """Wait for the value, starting the factory if needed.

        Unlike ``read`` this surfaces a failed resolution to the caller.
        """
        if self._value is not _UNSET:
            return self._value  # type: ignore[return-value]
        return await self.resolution

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Register ``callback`` for every value change.

        An already resolved value is replayed synchronously. Returns an
        idempotent unsubscribe function that is safe to call from inside the
        callback.
        """
        token = object()
        subscription: _Subscription[T] = _Subscription(callback)
        self._subscriptions[token] = subscription

        def unsubscribe() -> None:
            self._subscriptions.pop(token, None)

        if self._value is not _UNSET:
            self._deliver(token, subscription, self._value)  # type: ignore[arg-type]
        else:
            future = self.resolution.ensure_started()
            future.add_done_callback(self._observe_failure)

        return unsubscribe

    def _observe_failure(self, future: asyncio.Future) -> None:
        # Passive subscribers keep seeing "absent"; the failure was logged in
        # _produce and stays available to anyone awaiting resolve().
        if not future.cancelled():
            future.exception()

    def _update_all(self, value: T) -> None:
        self._value = value
        for token, subscription in list(self._subscriptions.items()):
            self._deliver(token, subscription, value)

    def _deliver(self, token: object, subscription: _Subscription, value: T) -> None:
        if token not in self._subscriptions:
            return
        if subscription.last_delivered is value:
            return
        subscription.last_delivered = value
        try:
            subscription.callback(value)
        except Exception:
            logger.exception("Subscriber of %s raised", self.name)
