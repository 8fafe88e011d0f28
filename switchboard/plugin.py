"""
Base class for plugins.

A plugin is a named unit of event handling code. The plugin handler
constructs it, injects its shared collaborators, calls on_load() once and
from then on forwards events to it by calling methods named after the
event. Plugins only need to define the event methods they care about.
"""

import abc
from typing import Any
from typing import Optional
from typing import TYPE_CHECKING

from switchboard import connection as connection_
from switchboard.config import Config
from switchboard.events import EventHandler

if TYPE_CHECKING:
    from switchboard import PluginHandler


class Plugin(abc.ABC):
    """
    Base class all loadable plugins extend.

    The short name identifies the plugin inside the handler and is compared
    case-insensitively there. It defaults to the class name.
    """

    # Class level defaults so subclasses need not call super().__init__().
    _name: Optional[str] = None
    _plugin_handler: Optional["PluginHandler"] = None
    _config: Optional[Config] = None
    _event_handler: Optional[EventHandler] = None
    _connection: Optional[connection_.Connection] = None

    # -----Identity------------------------------------------------------------

    @property
    def name(self) -> str:
        """The plugin's short name."""
        return self._name or type(self).__name__

    def set_name(self, name: str) -> "Plugin":
        self._name = name
        return self

    # -----Collaborators-------------------------------------------------------

    def set_plugin_handler(self, handler: "PluginHandler") -> "Plugin":
        self._plugin_handler = handler
        return self

    def get_plugin_handler(self) -> Optional["PluginHandler"]:
        return self._plugin_handler

    def set_event_handler(self, event_handler: EventHandler) -> "Plugin":
        self._event_handler = event_handler
        return self

    def get_event_handler(self) -> Optional[EventHandler]:
        return self._event_handler

    def set_config(self, config: Config) -> "Plugin":
        self._config = config
        return self

    def get_config(self, name: Optional[str] = None, default: Any = None) -> Any:
        """
        Read a setting for this plugin.

        Args:
            name (Optional[str]): Setting name. Names are looked up under the
                plugin's lowercased name, so 'limit' on plugin 'Quit' reads
                'quit.limit'. A leading '.' skips that prefix. When omitted the
                config object itself is returned.
            default (Any): Value returned when the setting does not exist.
        Returns:
            Any: The setting, resolved against the plugin's current connection.
        """
        config = self._config
        if name is None:
            return config

        if config is None:
            return default

        if name.startswith("."):
            key = name[1:]
        else:
            key = f"{self.name.lower()}.{name}"

        return config.get_setting(key, self.get_connection(), default)

    # -----Connection----------------------------------------------------------

    def set_connection(self, connection: connection_.Connection) -> "Plugin":
        """
        Called on every loaded plugin whenever the active connection changes,
        whether or not the plugin is active on that connection.
        """
        self._connection = connection
        return self

    def get_connection(self) -> Optional[connection_.Connection]:
        return self._connection

    # -----Lifecycle-----------------------------------------------------------

    def on_load(self) -> None:
        """Called once after the plugin is added to a handler."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} plugin '{self.name}'>"
