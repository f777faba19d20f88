from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar, overload

from treasure_chest._internal.resolution_stack import ResolutionStack
from treasure_chest.composition import CompositionDelegates, compose
from treasure_chest.contextual import ContextualBindingBuilder
from treasure_chest.exceptions import (
    ChestInvalidRegistrationError,
    ChestMissingBindingError,
    ChestNoActiveScopeError,
    format_key,
)
from treasure_chest.lazy import Lazy
from treasure_chest.registry import Binding, BindingRegistry
from treasure_chest.scope import Scope
from treasure_chest.types import Lifetime

if TYPE_CHECKING:
    from treasure_chest.types import Condition, DisposeFn, Factory

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Register factories under keys and resolve them by lifetime.

    Keys are any hashable value: strings, types, or sentinel objects. Each
    binding names a factory that receives the resolving container, so
    factories pull their own dependencies with ``container.resolve(...)``.

    Resolution is on demand. Missing bindings, circular construction and
    scoped resolution outside a scope surface as errors from ``resolve``.
    Child containers delegate lookups to their parent but keep their own
    aliases, singleton caches and scope. ``Container.compose`` merges several
    containers into a new one that delegates first-wins.

    Examples:
        .. code-block:: python

            container = Container()
            container.singleton("config", lambda c: Config.from_env())
            container.bind("repo", lambda c: UserRepo(c.resolve("config")))

            repo = container.resolve("repo")

    """

    __slots__ = (
        "_context",
        "_delegates",
        "_instances",
        "_lazy_instances",
        "_parent",
        "_registry",
        "_resolution_stack",
        "_scope",
    )

    def __init__(self, parent: Container | None = None) -> None:
        """Create an empty container.

        Args:
            parent: Optional container to delegate lookups to when this one
                has no binding for a key. The parent is never mutated.

        """
        self._parent = parent
        self._registry = BindingRegistry()
        self._instances: dict[tuple[Hashable, Hashable | None], Any] = {}
        self._lazy_instances: dict[tuple[Hashable, Hashable | None], Lazy[Any]] = {}
        self._scope: Scope | None = None
        self._context: Hashable | None = None
        self._resolution_stack = ResolutionStack()
        self._delegates: CompositionDelegates | None = None

    @property
    def parent(self) -> Container | None:
        return self._parent

    @property
    def current_scope(self) -> Scope | None:
        """Scope that scoped bindings resolve into, if one is attached."""
        return self._scope

    @property
    def current_context(self) -> Hashable | None:
        """Context of the innermost ``resolve`` call in progress, if any."""
        return self._context

    @property
    def delegates(self) -> tuple[Container, ...]:
        """Containers this one was composed from, in lookup order."""
        if self._delegates is None:
            return ()
        return self._delegates.containers

    # region Registration

    def register(
        self,
        key: Hashable,
        factory: Factory[Any],
        lifetime: Lifetime = Lifetime.TRANSIENT,
        *,
        condition: Condition | None = None,
        context: Hashable | None = None,
        dispose: DisposeFn | None = None,
        is_lazy: bool = False,
    ) -> None:
        """Append a binding for ``key``.

        The shortcuts ``bind``, ``singleton``, ``scoped``, ``lazy`` and
        ``when(...).needs(...).give(...)`` all end up here. Registering never
        replaces an earlier binding; selection picks among all of them.

        Args:
            key: Hashable key the binding is looked up by.
            factory: Callable receiving the resolving container.
            lifetime: Lifetime of produced values.
            condition: Optional predicate over the container; the binding is
                only preferred while it returns true.
            context: Optional discriminator matched against the context passed
                to ``resolve``.
            dispose: Optional callback receiving the instance when its scope is
                disposed. Only used by scoped bindings.
            is_lazy: Return a ``Lazy`` wrapper instead of the value.

        Raises:
            ChestInvalidRegistrationError: If ``key`` is unhashable, a callable
                argument is not callable, or ``lifetime`` is not a lifetime.

        """
        _validate_key(key)
        if not callable(factory):
            msg = f"Factory for {format_key(key)} must be callable, got {factory!r}."
            raise ChestInvalidRegistrationError(msg)
        if condition is not None and not callable(condition):
            msg = f"Condition for {format_key(key)} must be callable, got {condition!r}."
            raise ChestInvalidRegistrationError(msg)
        if dispose is not None and not callable(dispose):
            msg = f"Dispose callback for {format_key(key)} must be callable, got {dispose!r}."
            raise ChestInvalidRegistrationError(msg)

        binding = Binding(
            key=key,
            factory=factory,
            lifetime=_coerce_lifetime(key, lifetime),
            is_lazy=is_lazy,
            condition=condition,
            context=context,
            dispose=dispose,
        )
        self._registry.register(binding)
        logger.debug(
            "Registered %s%s binding for %s",
            "lazy " if is_lazy else "",
            binding.lifetime.value,
            format_key(key),
        )

    def bind(self, key: Hashable, factory: Factory[Any], condition: Condition | None = None) -> None:
        """Register a transient binding: the factory runs on every ``resolve``.

        Examples:
            .. code-block:: python

                container.bind("cache", lambda c: RedisCache(), lambda c: settings.use_redis)
                container.bind("cache", lambda c: MemoryCache(), lambda c: not settings.use_redis)

        """
        self.register(key, factory, Lifetime.TRANSIENT, condition=condition)

    def singleton(
        self,
        key: Hashable,
        factory: Factory[Any],
        condition: Condition | None = None,
    ) -> None:
        """Register a singleton binding: the factory runs at most once per container."""
        self.register(key, factory, Lifetime.SINGLETON, condition=condition)

    def scoped(self, key: Hashable, factory: Factory[Any], dispose: DisposeFn | None = None) -> None:
        """Register a scoped binding: one instance per scope.

        Args:
            key: Key to register.
            factory: Callable receiving the resolving container.
            dispose: Optional callback receiving the instance on scope
                disposal. Without it, instances of ``Disposable`` are disposed
                through their own ``dispose()``.

        """
        self.register(key, factory, Lifetime.SCOPED, dispose=dispose)

    def lazy(
        self,
        key: Hashable,
        factory: Factory[Any],
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Register a binding that resolves to a ``Lazy`` wrapper.

        With the default singleton lifetime the same wrapper is returned on
        every resolve, so the factory runs at most once. Any other lifetime
        returns a fresh wrapper each time.

        Examples:
            .. code-block:: python

                container.lazy("search", lambda c: SearchIndex.load())

                index = container.resolve("search")
                results = index.value.query("python")

        """
        self.register(key, factory, lifetime, is_lazy=True)

    def alias(self, alias_key: Hashable, real_key: Hashable) -> None:
        """Make ``alias_key`` resolve the bindings of ``real_key``.

        Aliases are a single hop: an alias pointing at another alias looks up
        bindings under the intermediate key. ``real_key`` is not required to
        exist yet.
        """
        _validate_key(alias_key)
        _validate_key(real_key)
        self._registry.alias(alias_key, real_key)
        logger.debug("Aliased %s to %s", format_key(alias_key), format_key(real_key))

    def when(self, context: Hashable) -> ContextualBindingBuilder:
        """Start a contextual binding.

        Examples:
            .. code-block:: python

                container.when("AdminService").needs("repo").give(lambda c: AdminRepo())

                repo = container.resolve("repo", "AdminService")

        """
        return ContextualBindingBuilder(self, context)

    # endregion Registration

    # region Resolution

    @overload
    def resolve(self, key: type[T], context: Hashable | None = None) -> T: ...

    @overload
    def resolve(self, key: Hashable, context: Hashable | None = None) -> Any: ...

    def resolve(self, key: Any, context: Hashable | None = None) -> Any:
        """Resolve ``key`` to a value according to its binding's lifetime.

        Args:
            key: Key or alias to resolve.
            context: Optional discriminator selecting contextual bindings.
                Defaults to ``key`` itself.

        Returns:
            The produced value, or a ``Lazy`` wrapper for lazy bindings.

        Raises:
            ChestMissingBindingError: If neither this container nor any
                ancestor has a binding for the key.
            ChestCircularDependencyError: If the key is already being
                constructed further up the same call tree.
            ChestNoActiveScopeError: If the selected binding is scoped and no
                scope is attached to this container.

        Notes:
            Exceptions raised by factories propagate unchanged. The resolution
            stack and current context are restored on every exit path.

        """
        real_key = self._registry.real_key(key)
        with self._resolution_stack.enter(real_key):
            previous_context = self._context
            self._context = key if context is None else context
            try:
                binding = self._find_binding(real_key, self._context)
                if binding is None:
                    logger.debug("No binding for %s", format_key(real_key))
                    raise ChestMissingBindingError(real_key)
                return self._instantiate(binding, real_key)
            finally:
                self._context = previous_context

    def has(self, key: Hashable) -> bool:
        """Return whether ``key`` resolves to a binding here or in an ancestor."""
        return self._find_binding(self._registry.real_key(key), None) is not None

    def keys(self) -> list[Hashable]:
        """Return every registered key, local first, then inherited, without duplicates."""
        parent_keys = self._parent.keys() if self._parent is not None else []
        return list(dict.fromkeys([*self._registry.local_keys(), *parent_keys]))

    def _find_binding(self, real_key: Hashable, context: Hashable | None) -> Binding | None:
        binding = self._registry.select(real_key, context, self)
        if binding is None and self._parent is not None:
            return self._parent._find_binding(real_key, context)  # noqa: SLF001
        return binding

    def _instantiate(self, binding: Binding, real_key: Hashable) -> Any:
        if binding.is_lazy:
            return self._resolve_lazy(binding, real_key)
        if binding.lifetime is Lifetime.SINGLETON:
            return self._resolve_singleton(binding, real_key)
        if binding.lifetime is Lifetime.SCOPED:
            return self._resolve_scoped(binding, real_key)
        return binding.factory(self)

    def _resolve_singleton(self, binding: Binding, real_key: Hashable) -> Any:
        cache_key = (real_key, binding.context)
        if cache_key in self._instances:
            return self._instances[cache_key]
        instance = binding.factory(self)
        self._instances[cache_key] = instance
        return instance

    def _resolve_scoped(self, binding: Binding, real_key: Hashable) -> Any:
        scope = self._scope
        if scope is None:
            raise ChestNoActiveScopeError(real_key)
        if scope.has(real_key):
            return scope.get(real_key)
        instance = binding.factory(self)
        scope.set(real_key, instance, binding.dispose)
        return instance

    def _resolve_lazy(self, binding: Binding, real_key: Hashable) -> Lazy[Any]:
        cache_key = (real_key, binding.context)
        cached = self._lazy_instances.get(cache_key)
        if cached is not None:
            return cached

        factory = binding.factory
        lazy: Lazy[Any] = Lazy(lambda: factory(self))
        if binding.lifetime is Lifetime.SINGLETON:
            self._lazy_instances[cache_key] = lazy
        return lazy

    # endregion Resolution

    # region Hierarchy, Scopes and Lifecycle

    def create_child(self) -> Container:
        """Create a container that falls back to this one for missing keys.

        Examples:
            .. code-block:: python

                request_container = app_container.create_child()
                request_container.bind("user", lambda c: current_user())

        """
        logger.debug("Created child container")
        return type(self)(parent=self)

    def create_scope(self) -> Scope:
        """Create a scope and attach it as this container's current scope.

        Any previously attached scope is detached without being disposed.
        """
        scope = Scope()
        self._scope = scope
        logger.debug("Attached new scope")
        return scope

    def with_scope(self, callback: Callable[[Scope], T]) -> T:
        """Run ``callback`` inside a fresh scope and dispose it afterwards.

        The scope is disposed on every exit path, including when ``callback``
        raises; the scope that was current before the call is re-attached
        afterwards.

        Raises:
            ChestAsyncDisposeInSyncContextError: If a dispose callback is
                asynchronous; use ``awith_scope`` instead.

        Examples:
            .. code-block:: python

                report = container.with_scope(lambda scope: container.resolve("report"))

        """
        previous_scope = self._scope
        scope = self.create_scope()
        try:
            return callback(scope)
        finally:
            try:
                scope.dispose()
            finally:
                self._scope = previous_scope

    async def awith_scope(self, callback: Callable[[Scope], Awaitable[T] | T]) -> T:
        """Asynchronously run ``callback`` inside a fresh scope and dispose it afterwards.

        ``callback`` may be sync or async. Dispose callbacks are awaited.

        Examples:
            .. code-block:: python

                async def handle(scope: Scope) -> Response:
                    db = container.resolve("db")
                    return await db.fetch_report()

                response = await container.awith_scope(handle)

        """
        previous_scope = self._scope
        scope = self.create_scope()
        try:
            result = callback(scope)
            if inspect.isawaitable(result):
                return await result
            return result
        finally:
            try:
                await scope.adispose()
            finally:
                self._scope = previous_scope

    @classmethod
    def compose(cls, containers: Sequence[Container]) -> Container:
        """Merge ``containers`` into a new parentless container.

        Every key of every input becomes a transient proxy binding that
        resolves from the first input whose ``has(key)`` is true at call time.
        The inputs are not modified.

        Raises:
            ChestInvalidCompositionError: If ``containers`` is empty.
            ChestMissingBindingError: From the proxy at resolve time, if no
                input has the key any more.

        Examples:
            .. code-block:: python

                app = Container.compose([infrastructure, billing, web])
                invoices = app.resolve("invoice_service")

        """
        return compose(containers, cls)

    def reset(self) -> None:
        """Clear bindings, instances, aliases, caches, context and scope of this container.

        Parents and children are not touched. The current scope is detached
        without being disposed.
        """
        self._registry.clear()
        self._instances.clear()
        self._lazy_instances.clear()
        self._context = None
        self._scope = None
        self._resolution_stack.clear()
        self._delegates = None
        logger.debug("Reset container")

    def dispose(self) -> None:
        """Dispose the current scope, if any, then ``reset()`` the container.

        Raises:
            ChestAsyncDisposeInSyncContextError: If a dispose callback is
                asynchronous; use ``adispose`` instead.

        """
        if self._scope is not None:
            self._scope.dispose()
        self.reset()

    async def adispose(self) -> None:
        """Asynchronously dispose the current scope, if any, then ``reset()`` the container."""
        if self._scope is not None:
            await self._scope.adispose()
        self.reset()

    # endregion Hierarchy, Scopes and Lifecycle

    def __contains__(self, key: object) -> bool:
        try:
            hash(key)
        except TypeError:
            return False
        return self.has(key)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(bindings={len(self._registry)}, "
            f"has_parent={self._parent is not None}, has_scope={self._scope is not None})"
        )


def _validate_key(key: object) -> None:
    try:
        hash(key)
    except TypeError as exc:
        msg = f"Binding keys must be hashable, got {key!r}."
        raise ChestInvalidRegistrationError(msg) from exc


def _coerce_lifetime(key: Hashable, lifetime: Lifetime | str) -> Lifetime:
    if isinstance(lifetime, Lifetime):
        return lifetime
    try:
        return Lifetime(lifetime)
    except ValueError as exc:
        msg = f"Unknown lifetime {lifetime!r} for {format_key(key)}."
        raise ChestInvalidRegistrationError(msg) from exc
