from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from treasure_chest.types import Lifetime

if TYPE_CHECKING:
    from treasure_chest.container import Container
    from treasure_chest.types import Factory


@dataclass(frozen=True, slots=True)
class ContextualBindingBuilder:
    """First step of ``container.when(context).needs(key).give(factory)``."""

    container: Container
    context: Hashable

    def needs(self, key: Hashable) -> ContextualNeeds:
        return ContextualNeeds(container=self.container, context=self.context, key=key)


@dataclass(frozen=True, slots=True)
class ContextualNeeds:
    """Second step of the contextual binding chain; ``give`` registers the binding."""

    container: Container
    context: Hashable
    key: Hashable

    def give(self, factory: Factory[Any], *, lifetime: Lifetime = Lifetime.TRANSIENT) -> None:
        """Register ``factory`` for ``key`` when resolved under ``context``.

        Args:
            factory: Callable receiving the resolving container.
            lifetime: Lifetime of the contextual binding. Contextual singletons
                are cached per context.

        """
        self.container.register(self.key, factory, lifetime, context=self.context)
