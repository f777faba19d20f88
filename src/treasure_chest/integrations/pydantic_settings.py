from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic_settings import BaseSettings

from treasure_chest.exceptions import ChestInvalidRegistrationError, format_key

if TYPE_CHECKING:
    from treasure_chest.container import Container

SettingsT = TypeVar("SettingsT", bound=BaseSettings)


def is_settings_class(candidate: object) -> bool:
    """Return whether ``candidate`` is a ``pydantic_settings.BaseSettings`` subclass."""
    return isinstance(candidate, type) and issubclass(candidate, BaseSettings)


def bind_settings(
    container: Container,
    settings_cls: type[SettingsT],
    *,
    key: Hashable | None = None,
    **overrides: Any,
) -> None:
    """Register a settings class as a singleton of ``container``.

    The settings object is built on first resolution, so environment
    variables, dotenv files and secrets are read once per container rather
    than at registration time. Child containers resolving the binding build
    their own copy.

    Args:
        container: Container to register on.
        settings_cls: ``BaseSettings`` subclass to instantiate.
        key: Key to register under. Defaults to ``settings_cls`` itself.
        **overrides: Field values passed to the constructor. They take
            precedence over every other settings source.

    Raises:
        ChestInvalidRegistrationError: If ``settings_cls`` is not a settings
            class.

    Examples:
        .. code-block:: python

            class AppSettings(BaseSettings):
                database_url: str = "sqlite://"

            bind_settings(container, AppSettings)
            bind_settings(container, AppSettings, key="test_settings", database_url="sqlite://")

    """
    if not is_settings_class(settings_cls):
        msg = f"{format_key(settings_cls)} is not a pydantic_settings.BaseSettings subclass."
        raise ChestInvalidRegistrationError(msg)

    container.singleton(
        settings_cls if key is None else key,
        lambda _container: settings_cls(**overrides),
    )


__all__ = [
    "bind_settings",
    "is_settings_class",
]
