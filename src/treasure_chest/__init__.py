from treasure_chest.container import Container
from treasure_chest.contextual import ContextualBindingBuilder, ContextualNeeds
from treasure_chest.exceptions import (
    ChestAsyncDisposeInSyncContextError,
    ChestCircularDependencyError,
    ChestError,
    ChestInvalidCompositionError,
    ChestInvalidRegistrationError,
    ChestMissingBindingError,
    ChestNoActiveScopeError,
)
from treasure_chest.lazy import Lazy
from treasure_chest.registry import Binding
from treasure_chest.scope import Disposable, Scope
from treasure_chest.types import Condition, DisposeFn, Factory, Lifetime

__all__ = [
    "Binding",
    "ChestAsyncDisposeInSyncContextError",
    "ChestCircularDependencyError",
    "ChestError",
    "ChestInvalidCompositionError",
    "ChestInvalidRegistrationError",
    "ChestMissingBindingError",
    "ChestNoActiveScopeError",
    "Condition",
    "Container",
    "ContextualBindingBuilder",
    "ContextualNeeds",
    "Disposable",
    "DisposeFn",
    "Factory",
    "Lazy",
    "Lifetime",
    "Scope",
]
