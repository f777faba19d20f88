from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias, TypeVar

if TYPE_CHECKING:
    from treasure_chest.container import Container

T = TypeVar("T")


class Lifetime(str, Enum):
    """Defines how many instances a binding produces and how long they live."""

    TRANSIENT = "transient"
    """A new instance is created every time the key is resolved."""

    SINGLETON = "singleton"
    """A single instance is created and shared for the lifetime of the container."""

    SCOPED = "scoped"
    """Instance is shared within the current scope, different instances across scopes."""


Factory: TypeAlias = Callable[["Container"], T]
"""Build a value from the resolving container."""

Condition: TypeAlias = Callable[["Container"], bool]
"""Decide at resolution time whether a binding applies."""

DisposeFn: TypeAlias = Callable[[Any], "Awaitable[None] | None"]
"""Release a scoped instance; receives the instance, may be async."""
