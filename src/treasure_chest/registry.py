from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from treasure_chest.types import Lifetime

if TYPE_CHECKING:
    from treasure_chest.container import Container
    from treasure_chest.types import Condition, DisposeFn, Factory

_NO_CONTEXT: Any = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Binding:
    """A registered key-to-factory association.

    Bindings are immutable and owned by the registry of exactly one
    container. Several bindings may share a key; their insertion order is the
    tie-break during selection.
    """

    key: Hashable
    factory: Factory[Any]
    lifetime: Lifetime = Lifetime.TRANSIENT
    is_lazy: bool = False
    condition: Condition | None = None
    context: Hashable | None = None
    dispose: DisposeFn | None = None

    def applies(self, container: Container) -> bool:
        """Return whether the condition is absent or holds for ``container``."""
        return self.condition is None or bool(self.condition(container))


class BindingRegistry:
    """Store bindings, aliases and the binding-selection cache of one container.

    Selection priority for ``(key, context)``:

    1. the first binding whose context equals the requested one and whose
       condition is absent or true;
    2. the first binding without a context whose condition is absent or true;
    3. the first binding registered for the key.

    Only unconditional choices are cached, so conditional bindings are
    re-evaluated on every lookup. Any registration clears the whole cache.
    """

    __slots__ = ("_aliases", "_bindings", "_selection_cache")

    def __init__(self) -> None:
        self._bindings: dict[Hashable, list[Binding]] = {}
        self._aliases: dict[Hashable, Hashable] = {}
        self._selection_cache: dict[tuple[Hashable, Hashable | None], Binding] = {}

    def register(self, binding: Binding) -> None:
        self._bindings.setdefault(binding.key, []).append(binding)
        self._selection_cache.clear()

    def alias(self, alias_key: Hashable, real_key: Hashable) -> None:
        self._aliases[alias_key] = real_key
        self._selection_cache.clear()

    def real_key(self, key: Hashable) -> Hashable:
        """Dereference ``key`` through the alias table, one hop only."""
        return self._aliases.get(key, key)

    def bindings_for(self, real_key: Hashable) -> tuple[Binding, ...]:
        return tuple(self._bindings.get(real_key, ()))

    def local_keys(self) -> list[Hashable]:
        return list(self._bindings)

    def select(
        self,
        real_key: Hashable,
        context: Hashable | None,
        container: Container,
    ) -> Binding | None:
        """Pick the local binding for ``real_key`` under ``context``.

        Returns:
            The selected binding, or ``None`` when nothing is registered
            locally for ``real_key``.

        """
        cache_key = (real_key, context)
        cached = self._selection_cache.get(cache_key)
        if cached is not None:
            return cached

        candidates = self._bindings.get(real_key)
        if not candidates:
            return None

        selected = _first_applicable(candidates, context, container)
        if selected is None:
            selected = _first_applicable(candidates, _NO_CONTEXT, container)
        if selected is None:
            selected = candidates[0]

        if selected.condition is None:
            self._selection_cache[cache_key] = selected
        return selected

    def clear(self) -> None:
        self._bindings.clear()
        self._aliases.clear()
        self._selection_cache.clear()

    def __contains__(self, real_key: object) -> bool:
        return real_key in self._bindings

    def __len__(self) -> int:
        return sum(len(bindings) for bindings in self._bindings.values())


def _first_applicable(
    candidates: list[Binding],
    context: Hashable | None,
    container: Container,
) -> Binding | None:
    for binding in candidates:
        if binding.context == context and binding.applies(container):
            return binding
    return None
