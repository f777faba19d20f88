"""Tests for the Lazy wrapper and lazy bindings."""

from __future__ import annotations

import pytest

from treasure_chest import Container, Lazy, Lifetime


class TestLazyWrapper:
    def test_defers_until_value_access(self) -> None:
        """The factory runs on first value access only."""
        calls: list[int] = []
        lazy = Lazy(lambda: calls.append(1) or "value")

        assert not lazy.is_initialized
        assert calls == []

        assert lazy.value == "value"
        assert lazy.value == "value"
        assert lazy.is_initialized
        assert calls == [1]

    def test_caches_none(self) -> None:
        """A None result still counts as initialized."""
        calls: list[int] = []
        lazy: Lazy[None] = Lazy(lambda: calls.append(1))

        assert lazy.value is None
        assert lazy.value is None
        assert calls == [1]

    def test_failed_factory_stays_uninitialized(self) -> None:
        """A raising factory leaves the wrapper retryable."""
        attempts: list[int] = []

        def factory() -> str:
            attempts.append(1)
            if len(attempts) == 1:
                msg = "not yet"
                raise RuntimeError(msg)
            return "ready"

        lazy = Lazy(factory)

        with pytest.raises(RuntimeError):
            _ = lazy.value
        assert not lazy.is_initialized
        assert lazy.value == "ready"

    def test_repr(self) -> None:
        """repr() shows whether the value was built."""
        lazy = Lazy(lambda: 42)

        assert repr(lazy) == "Lazy(<uninitialized>)"
        _ = lazy.value
        assert repr(lazy) == "Lazy(42)"


class TestLazyBinding:
    def test_resolve_returns_uninitialized_wrapper(self, container: Container) -> None:
        """Resolving a lazy binding does not run the factory."""
        calls: list[int] = []
        container.lazy("heavy", lambda c: calls.append(1) or {"data": "heavy"})

        lazy = container.resolve("heavy")

        assert isinstance(lazy, Lazy)
        assert calls == []
        assert lazy.value == {"data": "heavy"}
        assert calls == [1]

    def test_lazy_singleton_returns_same_wrapper(self, container: Container) -> None:
        """Lazy singletons hand back the identical wrapper, built once."""
        calls: list[int] = []
        container.lazy("heavy", lambda c: calls.append(1) or object())

        first = container.resolve("heavy")
        second = container.resolve("heavy")

        assert first is second
        assert first.value is second.value
        assert calls == [1]

    def test_lazy_transient_returns_new_wrappers(self, container: Container) -> None:
        """Lazy transients build a new wrapper and value each time."""
        container.lazy("heavy", lambda c: object(), Lifetime.TRANSIENT)

        first = container.resolve("heavy")
        second = container.resolve("heavy")

        assert first is not second
        assert first.value is not second.value

    def test_lazy_factory_receives_resolving_container(self, container: Container) -> None:
        """The deferred factory resolves dependencies from the container."""
        container.singleton("db", lambda c: "database")
        container.lazy("reports", lambda c: f"reports on {c.resolve('db')}")

        assert container.resolve("reports").value == "reports on database"

    def test_lazy_breaks_construction_cycle(self, container: Container) -> None:
        """A lazy edge defers the cycle until after construction."""
        container.singleton("a", lambda c: {"b": c.resolve("b")})
        container.lazy("b", lambda c: c.resolve("a"))

        a = container.resolve("a")

        assert a["b"].value is a

    def test_lazy_wrappers_are_per_container(self, container: Container, child: Container) -> None:
        """A child builds its own wrapper for a parent's lazy binding."""
        container.lazy("heavy", lambda c: {"data": "heavy"})

        parent_lazy = container.resolve("heavy")
        child_lazy = child.resolve("heavy")

        assert parent_lazy is not child_lazy
        assert parent_lazy.value == child_lazy.value == {"data": "heavy"}
        assert child.resolve("heavy") is child_lazy

    def test_contextual_lazy_singletons_cached_per_context(self, container: Container) -> None:
        """Lazy singletons for different contexts of one key never share a wrapper."""
        container.register(
            "repo",
            lambda c: "admin",
            Lifetime.SINGLETON,
            context="Admin",
            is_lazy=True,
        )
        container.lazy("repo", lambda c: "default")

        admin = container.resolve("repo", "Admin")
        default = container.resolve("repo")

        assert admin is not default
        assert admin.value == "admin"
        assert default.value == "default"
        assert container.resolve("repo", "Admin") is admin
        assert container.resolve("repo") is default
