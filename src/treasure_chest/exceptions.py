from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def format_key(key: Any) -> str:
    """Render a binding key for error messages and log records."""
    if isinstance(key, str):
        return key
    qualname = getattr(key, "__qualname__", None)
    if isinstance(qualname, str):
        return qualname
    return repr(key)


class ChestError(Exception):
    """Represent a base class for all treasure-chest failures.

    Catch this type when you want to handle any container error path without
    matching each concrete exception class individually.
    """


class ChestInvalidRegistrationError(ChestError):
    """Signal invalid arguments passed to a registration call.

    Raised by ``Container.register`` and the shortcuts built on it (``bind``,
    ``singleton``, ``scoped``, ``lazy``, ``when(...).needs(...).give(...)``)
    when the factory, condition or dispose callback is not callable, or when
    the lifetime is not a ``Lifetime`` member.
    """


class ChestMissingBindingError(ChestError):
    """Signal that no binding exists for a key.

    Raised by ``resolve`` after alias resolution and the full parent chain
    found nothing, and by composed containers when none of the composed
    inputs can serve the key any more.

    Typical fixes include registering the key, registering it on an ancestor
    container, or checking the alias table for a typo.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"No binding found for key: {format_key(key)}")


class ChestCircularDependencyError(ChestError):
    """Signal that a key re-entered its own construction.

    ``chain`` holds the keys under construction in order, ending with the
    repeated key, for example ``("A", "B", "A")``.

    Typical fixes include breaking the cycle with a ``lazy`` binding or
    moving the shared part into a third binding.
    """

    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = tuple(chain)
        rendered = " -> ".join(format_key(key) for key in self.chain)
        super().__init__(f"Circular dependency detected: {rendered}")


class ChestNoActiveScopeError(ChestError):
    """Signal resolution of a scoped binding without a current scope.

    Typical fixes include calling ``container.create_scope()`` first or
    wrapping the work in ``container.with_scope(...)``.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(
            f"No active scope for scoped binding: {format_key(key)}. Call create_scope() first.",
        )


class ChestInvalidCompositionError(ChestError):
    """Signal ``Container.compose`` called without any container."""

    def __init__(self) -> None:
        super().__init__("At least one container must be provided for composition")


class ChestAsyncDisposeInSyncContextError(ChestError):
    """Signal a dispose callback that returned an awaitable during sync disposal.

    Raised by ``Scope.dispose``, ``Container.dispose`` and
    ``Container.with_scope``. The offending awaitable is closed before raising.

    Typical fix is switching to ``await scope.adispose()``,
    ``await container.adispose()`` or ``await container.awith_scope(...)``.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(
            f"Dispose callback for {format_key(key)} is asynchronous; use adispose() instead.",
        )
