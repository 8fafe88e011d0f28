"""Shared fixtures for the switchboard test suite."""

from pathlib import Path
from typing import Any
from typing import Callable

import pytest

from switchboard import Config
from switchboard import EventHandler
from switchboard import Plugin
from switchboard import PluginHandler
from switchboard import Ui


PLUGIN_DIR = Path(__file__).parent / "plugins"
"""Plugin modules used by the tests. Classes there use the 'Sb' prefix."""

PLUGIN_PREFIX = "Sb"


class RecordingUi(Ui):
    """Ui that remembers every notification it receives."""

    def __init__(self) -> None:
        self.loaded: list[str] = []
        self.failures: list[tuple[Any, str]] = []

    def on_plugin_load(self, name: str) -> None:
        self.loaded.append(name)

    def on_plugin_failure(self, plugin: Any, message: str) -> None:
        self.failures.append((plugin, message))


@pytest.fixture
def ui() -> RecordingUi:
    return RecordingUi()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def events() -> EventHandler:
    return EventHandler()


@pytest.fixture
def handler(config: Config, events: EventHandler, ui: RecordingUi) -> PluginHandler:
    return PluginHandler(config, events, ui)


@pytest.fixture
def calls() -> list[tuple[str, str, tuple]]:
    """(plugin name, method, args) for every recorded event method call."""
    return []


@pytest.fixture
def make_plugin(calls: list) -> Callable[..., Plugin]:
    """
    Build a plugin with the given short name whose listed methods record their
    calls into the calls fixture.
    """

    def factory(name: str, *methods: str) -> Plugin:
        namespace: dict[str, Any] = {}
        for method in methods:

            def record(self, *args: Any, _method: str = method, **kwargs: Any) -> None:
                calls.append((self.name, _method, args))

            namespace[method] = record

        cls = type(f"Recording{name}", (Plugin,), namespace)
        return cls().set_name(name)

    return factory
