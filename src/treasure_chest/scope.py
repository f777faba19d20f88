from __future__ import annotations

import functools
import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterator
from types import TracebackType
from typing import TYPE_CHECKING, Any

from treasure_chest.exceptions import ChestAsyncDisposeInSyncContextError

if TYPE_CHECKING:
    from typing_extensions import Self

    from treasure_chest.types import DisposeFn

logger = logging.getLogger(__name__)


class Disposable(ABC):
    """Declare that a value releases resources through ``dispose()``.

    Scoped instances of a ``Disposable`` subclass are disposed automatically
    when their scope is disposed, unless the binding supplied its own dispose
    callback. Third-party classes can opt in with ``Disposable.register(cls)``.

    ``dispose`` may be a coroutine function; such instances must be released
    through ``adispose``.
    """

    __slots__ = ()

    @abstractmethod
    def dispose(self) -> Awaitable[None] | None:
        """Release the resources held by this value."""


class Scope:
    """Hold scoped instances and their dispose callbacks.

    A scope is created by ``Container.create_scope()`` and becomes the
    container's current scope. Dispose callbacks run in registration order,
    which is the order the instances were constructed in.

    Examples:
        .. code-block:: python

            container.scoped("db", lambda c: Connection(), lambda conn: conn.close())

            with container.create_scope():
                db = container.resolve("db")
            # conn.close() has run here

    """

    __slots__ = ("_disposers", "_instances")

    def __init__(self) -> None:
        self._instances: dict[Any, Any] = {}
        self._disposers: list[tuple[Any, Callable[[], Any]]] = []

    def get(self, key: Any) -> Any:
        """Return the instance stored under ``key``, or ``None``."""
        return self._instances.get(key)

    def has(self, key: Any) -> bool:
        return key in self._instances

    def set(self, key: Any, value: Any, dispose: DisposeFn | None = None) -> None:
        """Store ``value`` under ``key`` and queue its dispose behavior.

        Args:
            key: Key the instance was resolved for.
            value: The instance.
            dispose: Optional callback receiving ``value`` on disposal. When
                omitted and ``value`` is a ``Disposable``, ``value.dispose`` is
                queued instead.

        """
        self._instances[key] = value

        if dispose is not None:
            disposer: Callable[[], Any] = functools.partial(dispose, value)
        elif isinstance(value, Disposable):
            disposer = value.dispose
        else:
            return
        self._disposers.append((key, disposer))

    def keys(self) -> Iterator[Any]:
        return iter(self._instances)

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, key: object) -> bool:
        return key in self._instances

    def dispose(self) -> None:
        """Run every queued dispose callback synchronously, then clear the scope.

        Each callback is dequeued before it runs, so a retry never repeats a
        callback that already ran. The first failing callback propagates; the
        callbacks after it stay queued and the instances are kept.

        Raises:
            ChestAsyncDisposeInSyncContextError: If a callback returned an
                awaitable. The awaitable is closed and the callback is
                re-queued for ``adispose``.

        """
        while self._disposers:
            key, disposer = self._disposers.pop(0)
            result = disposer()
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                self._disposers.insert(0, (key, disposer))
                raise ChestAsyncDisposeInSyncContextError(key)
        self._clear()

    async def adispose(self) -> None:
        """Run every queued dispose callback, awaiting async ones, then clear the scope.

        Callbacks are dequeued before they run. The first failing callback
        propagates; the callbacks after it stay queued and the instances are
        kept.
        """
        while self._disposers:
            _key, disposer = self._disposers.pop(0)
            result = disposer()
            if inspect.isawaitable(result):
                await result
        self._clear()

    def _clear(self) -> None:
        logger.debug("Disposed scope holding %d instance(s)", len(self._instances))
        self._instances.clear()
        self._disposers.clear()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.adispose()

    def __repr__(self) -> str:
        return f"Scope(instances={len(self._instances)}, disposers={len(self._disposers)})"
