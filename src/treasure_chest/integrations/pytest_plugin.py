from __future__ import annotations

from collections.abc import Iterator

import pytest

from treasure_chest.container import Container
from treasure_chest.scope import Scope


@pytest.fixture()
def chest_container() -> Iterator[Container]:
    """Provide a fresh container per test and dispose it afterwards.

    Disposal runs the current scope's dispose callbacks and resets the
    container. Override this fixture to pre-register bindings shared by a test
    module.

    Yields:
        A new ``Container`` instance.

    """
    container = Container()
    yield container
    container.dispose()


@pytest.fixture()
def chest_scope(chest_container: Container) -> Iterator[Scope]:
    """Attach a scope to ``chest_container`` for the duration of a test.

    The scope is disposed before ``chest_container`` is torn down, so scoped
    dispose callbacks have run by the time the test's teardown finishes.

    Yields:
        The attached ``Scope``.

    """
    scope = chest_container.create_scope()
    yield scope
    scope.dispose()
