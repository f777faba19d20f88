from __future__ import annotations

import pytest
from pydantic_settings import BaseSettings, SettingsConfigDict

from treasure_chest import Container
from treasure_chest.exceptions import ChestInvalidRegistrationError
from treasure_chest.integrations.pydantic_settings import bind_settings, is_settings_class


class _AppSettings(BaseSettings):
    database_url: str = "sqlite://"
    debug: bool = False


class _PrefixedSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHEST_")

    region: str = "local"


def test_is_settings_class() -> None:
    assert is_settings_class(_AppSettings) is True
    assert is_settings_class(BaseSettings) is True
    assert is_settings_class(dict) is False
    assert is_settings_class(_AppSettings()) is False
    assert is_settings_class("not-a-class") is False


def test_bind_settings_reads_environment_on_first_resolve(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    container = Container()
    bind_settings(container, _AppSettings)
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")

    settings = container.resolve(_AppSettings)
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/other")

    assert settings.database_url == "postgresql://db/app"
    assert container.resolve(_AppSettings) is settings


def test_bind_settings_under_custom_key(monkeypatch: pytest.MonkeyPatch) -> None:
    container = Container()
    monkeypatch.setenv("DEBUG", "true")
    bind_settings(container, _AppSettings, key="settings")

    assert container.resolve("settings").debug is True
    assert not container.has(_AppSettings)


def test_bind_settings_overrides_beat_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    container = Container()
    monkeypatch.setenv("CHEST_REGION", "eu-west-1")
    bind_settings(container, _PrefixedSettings)
    bind_settings(container, _PrefixedSettings, key="pinned", region="us-east-1")

    assert container.resolve(_PrefixedSettings).region == "eu-west-1"
    assert container.resolve("pinned").region == "us-east-1"


def test_child_containers_build_their_own_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    parent = Container()
    bind_settings(parent, _AppSettings)
    child = parent.create_child()
    monkeypatch.setenv("DEBUG", "false")

    parent_settings = parent.resolve(_AppSettings)
    monkeypatch.setenv("DEBUG", "true")

    assert child.resolve(_AppSettings) is not parent_settings
    assert child.resolve(_AppSettings).debug is True
    assert parent.resolve(_AppSettings).debug is False


def test_bind_settings_rejects_plain_classes() -> None:
    class _NotSettings:
        pass

    with pytest.raises(ChestInvalidRegistrationError, match="_NotSettings is not a"):
        bind_settings(Container(), _NotSettings)  # type: ignore[type-var]
