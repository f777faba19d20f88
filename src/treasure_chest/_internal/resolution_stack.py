from __future__ import annotations

import logging
from collections.abc import Hashable, Iterator
from contextlib import contextmanager

from treasure_chest.exceptions import ChestCircularDependencyError, format_key

logger = logging.getLogger(__name__)


class ResolutionStack:
    """Track the keys currently under construction on one container.

    The stack is empty between top-level ``resolve`` calls. Entering a key
    that is already on the stack raises ``ChestCircularDependencyError``
    with the full chain, ending with the repeated key.
    """

    __slots__ = ("_keys",)

    def __init__(self) -> None:
        self._keys: list[Hashable] = []

    @contextmanager
    def enter(self, key: Hashable) -> Iterator[None]:
        if key in self._keys:
            logger.debug("Circular resolution of %s", format_key(key))
            raise ChestCircularDependencyError([*self._keys, key])
        self._keys.append(key)
        try:
            yield
        finally:
            # reset() inside a factory may already have emptied the stack
            if self._keys:
                self._keys.pop()

    def clear(self) -> None:
        self._keys.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
