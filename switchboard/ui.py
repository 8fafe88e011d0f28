"""
Notifiers the plugin handler reports plugin loads and load failures to.

Each add_plugin() call results in exactly one notification: on_plugin_load
when the plugin was stored, on_plugin_failure when anything went wrong.
"""

import logging
from typing import Any


logger = logging.getLogger(__name__)


class Ui(object):
    """Base notifier. Does nothing."""

    def on_plugin_load(self, name: str) -> None:
        """Called after a plugin has been loaded and stored."""

    def on_plugin_failure(self, plugin: Any, message: str) -> None:
        """
        Called when loading a plugin failed.

        Args:
            plugin (Any): The requested short name or the plugin instance.
            message (str): The failure message.
        """


NullUi = Ui


class LoggingUi(Ui):
    """Notifier that writes plugin activity to the log."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self._log = log

    def on_plugin_load(self, name: str) -> None:
        self._log.info(f"Loaded plugin {name}")

    def on_plugin_failure(self, plugin: Any, message: str) -> None:
        self._log.error(f"Unable to load plugin {plugin}: {message}")
