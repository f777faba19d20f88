"""Shared pytest fixtures for treasure-chest tests."""

import pytest

from treasure_chest.container import Container


@pytest.fixture()
def container() -> Container:
    """Empty root container."""
    return Container()


@pytest.fixture()
def child(container: Container) -> Container:
    """Child of the ``container`` fixture."""
    return container.create_child()
