"""Small asyncio primitives shared by the bootstrap and the session layer."""
import asyncio
from typing import Any, Awaitable, Callable, Generator, Generic, Optional, TypeVar

T = TypeVar("T")


class Deferred(Generic[T]):
    """A future settled from the outside via ``resolve`` / ``reject``.

    Only the first settlement counts; later calls are ignored. Any number of
    coroutines may await the same instance and all observe the same outcome.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future = loop.create_future()

    def resolve(self, value: T) -> None:
        if not self._future.done():
            self._future.set_result(value)

    def reject(self, error: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(error)

    def done(self) -> bool:
        return self._future.done()

    @property
    def future(self) -> asyncio.Future:
        return self._future

    def __await__(self) -> Generator[Any, None, T]:
        return asyncio.shield(self._future).__await__()


def new_deferred() -> Deferred:
    """Create an unsettled Deferred bound to the running loop."""
    return Deferred()


class LazyFuture(Generic[T]):
    """A future whose producer only runs once somebody observes it.

    The producer is invoked at most once per instance. Every observer,
    including ones racing the first, shares the same underlying future, and
    a failure is cached and replayed rather than retried.
    """

    def __init__(self, producer: Callable[[], Awaitable[T]]) -> None:
        self._producer = producer
        self._future: Optional[asyncio.Future] = None

    @property
    def started(self) -> bool:
        return self._future is not None

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def ensure_started(self) -> asyncio.Future:
        """Start the producer if needed and return the shared future."""
        if self._future is None:
            try:
                awaitable = self._producer()
            except Exception as error:
                future = asyncio.get_running_loop().create_future()
                future.set_exception(error)
                self._future = future
            else:
                self._future = asyncio.ensure_future(awaitable)
        return self._future

    def __await__(self) -> Generator[Any, None, T]:
        # Shielded so a cancelled observer never cancels the shared producer.
        return asyncio.shield(self.ensure_started()).__await__()


def lazy(producer: Callable[[], Awaitable[T]]) -> LazyFuture[T]:
    """Wrap ``producer`` in a LazyFuture."""
    return LazyFuture(producer)
