"""
# Plugin Handler

Herein is the plugin handler: the registry that loads plugins on demand,
tracks which connection each plugin is active on, and dispatches events to
the plugins that are active and accepted by the current filters.

A handler is an ordinary object. The driving process builds one and passes
it to whatever needs it; plugins receive it when they are loaded.

Events are plain method names. dispatch('on_privmsg', event) calls
on_privmsg(event) on every admitted plugin that defines it. Switching the
active connection is itself an event, 'set_connection', and is delivered to
every loaded plugin before the switch takes effect.
"""

import inspect
import json
import logging
import os
import sys
import threading
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import Optional
from typing import Sequence
from typing import Union

from switchboard import errors
from switchboard import handlers
from switchboard.config import Config
from switchboard.config import PLUGIN_AUTOLOAD
from switchboard.config import PLUGIN_PATHS
from switchboard.connection import Connection
from switchboard.connection import ConnectionHandler
from switchboard.events import EventHandler
from switchboard.filters import AllowFilter
from switchboard.filters import Filter
from switchboard.filters import FilterChain
from switchboard.filters import SimpleFilter
from switchboard.iterator import ListCursor
from switchboard.iterator import PluginIterator
from switchboard.locators import FACTORY
from switchboard.locators import LOCATION
from switchboard.locators import PluginInfo
from switchboard.locators import PluginLoader
from switchboard.plugin import Plugin
from switchboard.scopes import CONNECTIONS
from switchboard.scopes import ScopeTable
from switchboard.ui import LoggingUi
from switchboard.ui import Ui


version_major = 1
version_minor = 0
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

logger = logging.getLogger(__name__)


SET_CONNECTION = "set_connection"
"""The event announcing a change of active connection."""

PLUGIN_SPEC = Union[str, Plugin]
"""A plugin short name or a plugin instance."""


class PluginHandler(object):
    """
    Loads plugins, scopes them to connections and dispatches events to them.

    Plugins are keyed by their lowercased short name. To manage them use
    add_plugin(), remove_plugin() and get_plugin(). To deliver an event use
    dispatch() (or dispatch_async() when some plugins are coroutines).

    Only plugins in scope for the active connection receive events. With no
    active connection every loaded plugin is in scope. Filters added through
    add_filter() narrow delivery further until the active connection changes.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        events: Optional[EventHandler] = None,
        ui: Optional[Ui] = None,
    ) -> None:
        self._lock = threading.RLock()

        # -----Collaborators-----
        self.config: Config = config if config is not None else Config()
        self.events: EventHandler = events if events is not None else EventHandler()
        self.ui: Ui = ui if ui is not None else LoggingUi()

        # -----Registry-----
        self._plugins: dict[str, Plugin] = {}
        self._scopes = ScopeTable()
        self._loader = PluginLoader()
        self._autoload: bool = bool(self.config.get(PLUGIN_AUTOLOAD, False))

        # -----Dispatch State-----
        self._connection: Optional[Connection] = None
        self._filters = FilterChain()
        self._active_plugins: Optional[tuple[Plugin, ...]] = None

        self._plugin_exception_handler: Optional[
            handlers.PLUGIN_EXCEPTION_HANDLER
        ] = None

        paths = self.config.get(PLUGIN_PATHS) or {}
        for directory, prefix in paths.items():
            self.add_path(directory, prefix or "")

        self.add_path(sys.modules[__name__])

    # -----Paths and Construction----------------------------------------------

    def add_path(self, path: LOCATION, prefix: str = "") -> "PluginHandler":
        """
        Add a location to search for plugin classes. Locations are searched
        in the reverse of the order they were added in.

        Args:
            path (LOCATION): Directory, or imported package, holding plugin
                modules.
            prefix (str): Class name prefix, e.g. 'Bot' to load class BotQuit
                for plugin 'Quit'.
        Raises:
            UnreadableLocationError: If the path is not a readable directory.
        """
        self._loader.add_path(path, prefix)
        return self

    def get_plugin_info(self, name: str) -> PluginInfo:
        """
        Look up where a plugin's class lives.

        Raises:
            PluginNotFoundError: If no path provides the plugin.
        """
        return self._loader.get_plugin_info(name)

    def load_plugin_class(self, name: str) -> type[Plugin]:
        """
        Find and import a plugin's class without constructing it.

        Raises:
            PluginNotFoundError: If no path provides the plugin class.
            IncorrectBaseClassError: If the class does not extend Plugin.
            NotInstantiableError: If the class is abstract.
        """
        return self._loader.load_class(self._loader.get_plugin_info(name))

    def register_factory(self, cls: type, factory: FACTORY) -> "PluginHandler":
        """
        Build instances of cls (and subclasses) with factory(*args) instead of
        cls(*args).
        """
        self._loader.register_factory(cls, factory)
        return self

    def set_autoload(self, flag: bool = True) -> "PluginHandler":
        """Whether get_plugin() loads plugins that are not loaded yet."""
        self._autoload = bool(flag)
        return self

    def get_autoload(self) -> bool:
        return self._autoload

    # -----Plugin Management---------------------------------------------------

    def add_plugin(
        self,
        plugin: PLUGIN_SPEC,
        args: Optional[Sequence[Any]] = None,
        connections: Optional[CONNECTIONS] = None,
        include_global: Optional[bool] = None,
    ) -> Plugin:
        """
        Load a plugin and make it active on the given connections.

        Args:
            plugin (PLUGIN_SPEC): Short name of the plugin to construct, or an
                already built plugin instance.
            args (Optional[Sequence[Any]]): Constructor arguments used when a
                short name is given.
            connections (Optional[CONNECTIONS]): Connection(s) or uniqid(s) the
                plugin is active on. Defaults to the global scope.
            include_global (Optional[bool]): When given, sets whether those
                connections also see globally scoped plugins.
        Returns:
            Plugin: The loaded instance. Adding a name that is already loaded
                returns the existing instance and only updates its scopes.
        Raises:
            PluginError: If the plugin cannot be found or constructed.
            Exception: Anything raised by the plugin's constructor or on_load().
        Notes:
            The UI is told about the outcome exactly once: on_plugin_load on
            success, on_plugin_failure before the exception is re-raised. A
            failed add leaves the handler as it was.
        """
        with self._lock:
            if isinstance(plugin, str):
                existing = self._plugins.get(plugin.lower())
            elif isinstance(plugin, Plugin):
                existing = self._plugins.get(plugin.name.lower())
                if existing is not plugin:
                    existing = None
            else:
                existing = None

            if existing is not None:
                self.add_plugin_connection(existing.name, connections, include_global)
                return existing

            try:
                instance = self._build_plugin(plugin, args)
                index = instance.name.lower()

                instance.set_plugin_handler(self)
                instance.set_config(self.config)
                instance.set_event_handler(self.events)
                instance.on_load()
            except Exception as e:
                logger.debug(f"Failed to load plugin {plugin}: {e}")
                self.ui.on_plugin_failure(plugin, str(e))
                raise

            if index in self._plugins:
                logger.debug(f"Replacing loaded plugin {index}")

            self._plugins[index] = instance
            self.add_plugin_connection(index, connections, include_global)

        logger.debug(f"Loaded plugin {index}")
        self.ui.on_plugin_load(instance.name)
        return instance

    def _build_plugin(self, plugin: PLUGIN_SPEC, args: Optional[Sequence[Any]]) -> Plugin:
        if isinstance(plugin, Plugin):
            return plugin

        if not isinstance(plugin, str):
            raise errors.IncorrectBaseClassError(
                f"{plugin!r} is neither a plugin name nor a Plugin instance"
            )

        cls = self.load_plugin_class(plugin)
        instance = self._loader.create(cls, args)
        if not isinstance(instance, Plugin):
            raise errors.IncorrectBaseClassError(
                f'Factory for plugin "{plugin}" did not return a Plugin'
            )

        if instance.name.lower() != plugin.lower():
            instance.set_name(plugin)

        return instance

    def add_plugins(
        self, plugins: Iterable[Union[PLUGIN_SPEC, Sequence[Any]]]
    ) -> "PluginHandler":
        """
        Add several plugins.

        Args:
            plugins: Elements are a short name, a plugin instance, or a
                (short name, constructor arguments) pair.
        """
        for plugin in plugins:
            if isinstance(plugin, (list, tuple)):
                self.add_plugin(plugin[0], plugin[1])
            else:
                self.add_plugin(plugin)

        return self

    def remove_plugin(self, plugin: PLUGIN_SPEC) -> "PluginHandler":
        """
        Remove a plugin and drop it from every scope. Unknown plugins are
        ignored. Dispatches already under way still reach the removed plugin.
        """
        name = plugin.name if isinstance(plugin, Plugin) else str(plugin)
        index = name.lower()

        with self._lock:
            removed = self._plugins.pop(index, None)
            self._scopes.unscope(index)
            self._active_plugins = None

        if removed is not None:
            logger.debug(f"Removed plugin {index}")

        return self

    def get_plugin(self, name: str) -> Plugin:
        """
        Get a loaded plugin, loading it first if autoload is enabled.

        Raises:
            PluginNotLoadedError: If the plugin is not loaded and autoload is
                disabled.
            PluginError: Any add_plugin() failure when autoloading.
        """
        with self._lock:
            plugin = self._plugins.get(name.lower())
            if plugin is not None:
                return plugin

            if not self._autoload:
                raise errors.PluginNotLoadedError(
                    f'Plugin "{name}" has been requested, is not loaded, '
                    f"and autoload is disabled"
                )

            return self.add_plugin(name)

    def get_plugins(
        self, names: Optional[Union[str, Iterable[str]]] = None
    ) -> dict[str, Plugin]:
        """
        Get plugins keyed by lowercased short name.

        Args:
            names (Optional[Union[str, Iterable[str]]]): One or more short names
                to limit the result to, each fetched through get_plugin().
                Defaults to every loaded plugin.
        """
        if not names:
            with self._lock:
                return dict(self._plugins)

        if isinstance(names, str):
            names = [names]

        return {name.lower(): self.get_plugin(name) for name in names}

    def has_plugin(self, name: str) -> bool:
        return name.lower() in self._plugins

    def __contains__(self, name: str) -> bool:
        return self.has_plugin(name)

    def __len__(self) -> int:
        return len(self._plugins)

    # -----Scopes--------------------------------------------------------------

    def add_plugin_connection(
        self,
        plugin: str,
        connections: Optional[CONNECTIONS] = None,
        include_global: Optional[bool] = None,
    ) -> "PluginHandler":
        """
        Make a plugin active on some connections, or globally if none given.

        Args:
            plugin (str): Plugin short name.
            connections (Optional[CONNECTIONS]): Connection(s) or uniqid(s).
            include_global (Optional[bool]): When given, sets whether those
                connections also see globally scoped plugins.
        """
        with self._lock:
            if connections is None:
                self._scopes.set_global(plugin)
            else:
                self._scopes.set_connection_scope(plugin, connections, include_global)
            self._active_plugins = None

        return self

    def is_plugin_in_connection(
        self, plugin: str, connection: Optional[Union[Connection, str]] = None
    ) -> bool:
        """
        Check whether a plugin is active on a connection. Without a connection,
        or for one with no scope of its own, the global scope decides.
        """
        return self._scopes.is_in_scope(plugin, connection)

    def is_plugin_in_active_connection(self, plugin: str) -> bool:
        """
        Check whether a plugin is active on the active connection.
        Returns True for every plugin while no connection is active.
        """
        if self._connection is None:
            return True
        return self._scopes.is_in_scope(plugin, self._connection)

    def get_plugin_scopes(self) -> dict[str, dict[str, object]]:
        """
        Scopes as plain data, keyed by uniqid with the global scope under '*'.
        Use add_plugin_connection() and remove_plugin() to change them.
        """
        with self._lock:
            return self._scopes.to_dict()

    def get_connection(self) -> Optional[Connection]:
        """The active connection, if any."""
        return self._connection

    # -----Filters and Iteration-----------------------------------------------

    def add_filter(self, filter_: Filter) -> "PluginHandler":
        """
        Add a filter applied to every dispatch until the active connection
        changes.
        """
        with self._lock:
            self._filters.add(filter_)
        return self

    def get_filters(self) -> FilterChain:
        return self._filters

    def get_active_plugins(self) -> list[Plugin]:
        """Plugins in scope for the active connection, ignoring filters."""
        with self._lock:
            if self._active_plugins is None:
                self._active_plugins = tuple(
                    plugin
                    for index, plugin in self._plugins.items()
                    if self.is_plugin_in_active_connection(index)
                )
            return list(self._active_plugins)

    def get_iterator(self) -> PluginIterator:
        """
        A new iterator over the plugins in scope and accepted by the filters.
        Each call returns an independent iterator.
        """
        with self._lock:
            active = self.get_active_plugins()
            return PluginIterator(ListCursor(active), self._filters)

    def __iter__(self) -> Iterator[Plugin]:
        return self.get_iterator()

    # -----Dispatch------------------------------------------------------------

    def set_plugin_exception_handler(
        self, handler: Optional[handlers.PLUGIN_EXCEPTION_HANDLER]
    ) -> None:
        """
        Set the exception handler for plugin errors raised during dispatch.

        Args:
            Optional[handlers.PLUGIN_EXCEPTION_HANDLER]:
                Callable with signature (Plugin, str, Exception) -> bool.
                Returns True to stop delivery, False to continue.
                Pass None to restore default behavior (re-raise exceptions).
        """
        self._plugin_exception_handler = handler

    @staticmethod
    def _validate_event(event: str) -> None:
        if not event or event.startswith("_"):
            raise ValueError(f"'{event}' is not a valid event name")

    def _begin_connection_switch(self) -> None:
        with self._lock:
            self._connection = None
            self._active_plugins = None
            self._filters = FilterChain()

    def _end_connection_switch(self, args: tuple, kwargs: dict[str, Any]) -> None:
        connection = args[0] if args else kwargs.get("connection")
        with self._lock:
            self._connection = connection
            self._active_plugins = None

        uniqid = connection.uniqid if connection is not None else None
        logger.debug(f"Active connection is now {uniqid}")

    def dispatch(self, event: str, *args: Any, **kwargs: Any) -> bool:
        """
        Call the method named event on every admitted plugin that defines it.

        Plugins are visited in the order they were loaded. Plugins without the
        method are skipped. The set of plugins visited is fixed when delivery
        starts; plugins added or removed by event methods affect the next
        dispatch.

        Args:
            event (str): Event (method) name.
            *args, **kwargs: Arguments passed to each event method.
        Returns:
            bool: Always True.
        Raises:
            ValueError: If event is not a public method name.
            Exception: Whatever an event method raises, unless an exception
                handler is installed.
        Notes:
            Dispatching 'set_connection' first clears the active connection and
            the filters so that every loaded plugin hears about the switch,
            then makes the given connection active for later dispatches.
        """
        self._validate_event(event)

        switching = event == SET_CONNECTION
        if switching:
            self._begin_connection_switch()

        for plugin in self.get_iterator():
            method = getattr(plugin, event, None)
            if not callable(method):
                continue

            try:
                method(*args, **kwargs)
            except Exception as e:
                if self._plugin_exception_handler is None:
                    raise

                stop = self._plugin_exception_handler(plugin, event, e)
                if stop:
                    break

        if switching:
            self._end_connection_switch(args, kwargs)

        return True

    async def dispatch_async(self, event: str, *args: Any, **kwargs: Any) -> bool:
        """
        Like dispatch(), but awaits event methods that are coroutines.

        Plugins are still visited one at a time in load order; each awaitable
        result is awaited before moving on to the next plugin.
        """
        self._validate_event(event)

        switching = event == SET_CONNECTION
        if switching:
            self._begin_connection_switch()

        for plugin in self.get_iterator():
            method = getattr(plugin, event, None)
            if not callable(method):
                continue

            try:
                result = method(*args, **kwargs)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                if self._plugin_exception_handler is None:
                    raise

                stop = self._plugin_exception_handler(plugin, event, e)
                if stop:
                    break

        if switching:
            self._end_connection_switch(args, kwargs)

        return True

    def set_connection(self, connection: Optional[Connection]) -> bool:
        """Announce a new active connection to every plugin, then activate it."""
        return self.dispatch(SET_CONNECTION, connection)

    # -----Introspection API---------------------------------------------------

    def to_dict(self) -> dict:
        """Convert the handler's plugins, scopes and paths to a dictionary."""
        with self._lock:
            plugins = {
                index: f"{type(plugin).__module__}.{type(plugin).__qualname__}"
                for index, plugin in self._plugins.items()
            }
            connection = self._connection
            return {
                "plugins": plugins,
                "scopes": self._scopes.to_dict(),
                "paths": [
                    {"path": str(path.directory), "prefix": path.prefix}
                    for path in self._loader.paths
                ],
                "autoload": self._autoload,
                "active_connection": connection.uniqid if connection else None,
                "filters": [type(f).__name__ for f in self._filters],
            }

    def to_string(self) -> str:
        """Returns a string representation of the handler."""
        return json.dumps(self.to_dict(), indent=4)

    def export(self, filepath: Union[str, os.PathLike]) -> None:
        """Export the handler structure to filepath."""
        with open(filepath, "w") as outfile:
            json.dump(self.to_dict(), outfile, indent=4)


__all__ = [
    "AllowFilter",
    "Config",
    "Connection",
    "ConnectionHandler",
    "EventHandler",
    "Filter",
    "FilterChain",
    "LoggingUi",
    "ListCursor",
    "Plugin",
    "PluginHandler",
    "PluginInfo",
    "PluginIterator",
    "SET_CONNECTION",
    "ScopeTable",
    "SimpleFilter",
    "Ui",
    "errors",
    "handlers",
]
