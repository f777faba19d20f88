from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from treasure_chest.exceptions import ChestInvalidCompositionError, ChestMissingBindingError

if TYPE_CHECKING:
    from treasure_chest.container import Container

logger = logging.getLogger(__name__)


class CompositionDelegates:
    """Ordered list of containers consulted by a composed container.

    Lookups only go through the public ``has``/``resolve``/``keys`` contract
    of each delegate, so composing never touches a delegate's state.
    """

    __slots__ = ("_containers",)

    def __init__(self, containers: Iterable[Container]) -> None:
        self._containers: tuple[Container, ...] = tuple(containers)
        if not self._containers:
            raise ChestInvalidCompositionError

    @property
    def containers(self) -> tuple[Container, ...]:
        return self._containers

    def keys(self) -> list[Hashable]:
        """Return the union of every delegate's keys, first occurrence first."""
        return list(dict.fromkeys(key for container in self._containers for key in container.keys()))

    def resolve_first(self, key: Hashable) -> Any:
        """Resolve ``key`` from the first delegate that has a binding for it.

        Raises:
            ChestMissingBindingError: If no delegate has the key any more.

        """
        for container in self._containers:
            if container.has(key):
                return container.resolve(key)
        raise ChestMissingBindingError(key)

    def __len__(self) -> int:
        return len(self._containers)


class CompositionProxy:
    """Factory of a composed container's proxy binding for one key."""

    __slots__ = ("_delegates", "_key")

    def __init__(self, delegates: CompositionDelegates, key: Hashable) -> None:
        self._delegates = delegates
        self._key = key

    def __call__(self, _container: Container) -> Any:
        return self._delegates.resolve_first(self._key)

    def __repr__(self) -> str:
        return f"CompositionProxy({self._key!r}, delegates={len(self._delegates)})"


def compose(containers: Sequence[Container], container_factory: type[Container]) -> Container:
    """Build a parentless container that proxies every key of ``containers``.

    Each distinct key becomes a transient proxy binding resolved first-wins
    across ``containers`` at call time.

    Raises:
        ChestInvalidCompositionError: If ``containers`` is empty.

    """
    delegates = CompositionDelegates(containers)
    composed = container_factory()
    composed._delegates = delegates  # noqa: SLF001

    keys = delegates.keys()
    for key in keys:
        composed.bind(key, CompositionProxy(delegates, key))

    logger.debug("Composed %d container(s) exposing %d key(s)", len(delegates), len(keys))
    return composed
