from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Lazy(Generic[T]):
    """Defer building a value until it is first read.

    The factory runs at most once; every later ``value`` access returns the
    cached result.

    Examples:
        .. code-block:: python

            container.lazy("reports", lambda c: ReportEngine(c.resolve("db")))

            reports = container.resolve("reports")
            assert not reports.is_initialized
            reports.value.render()  # built here

    """

    __slots__ = ("_factory", "_initialized", "_value")

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: T | None = None
        self._initialized = False

    @property
    def value(self) -> T:
        """Return the value, building it on first access."""
        if not self._initialized:
            self._value = self._factory()
            self._initialized = True
        return self._value  # type: ignore[return-value]

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def __repr__(self) -> str:
        if self._initialized:
            return f"Lazy({self._value!r})"
        return "Lazy(<uninitialized>)"
