"""
Settings container passed through to every plugin.

Settings are keyed by dotted names ('plugins.paths', 'quit.reason').
Connections may carry their own options which take precedence over the
global value when a setting is read for that connection.
"""

from collections.abc import MutableMapping
from typing import Any
from typing import Iterator
from typing import Optional

from switchboard import connection as connection_


PLUGIN_PATHS = "plugins.paths"
"""Mapping of plugin directory to class name prefix."""

PLUGIN_AUTOLOAD = "plugins.autoload"
"""Initial value of the handler's autoload flag."""


class Config(MutableMapping):
    """Dotted-name settings mapping."""

    def __init__(self, settings: Optional[dict[str, Any]] = None, **kwargs: Any) -> None:
        self._settings: dict[str, Any] = {}
        if settings:
            self._settings.update(settings)
        self._settings.update(kwargs)

    def get_setting(
        self,
        key: str,
        connection: Optional[connection_.Connection] = None,
        default: Any = None,
    ) -> Any:
        """
        Read a setting, preferring the connection's own option of the same name.

        Args:
            key (str): Dotted setting name.
            connection (Optional[Connection]): Connection whose options override
                the global settings.
            default (Any): Returned when neither defines the setting.
        """
        if connection is not None and key in connection.options:
            return connection.options[key]
        return self._settings.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._settings[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._settings[key] = value

    def __delitem__(self, key: str) -> None:
        del self._settings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self) -> int:
        return len(self._settings)

    def __repr__(self) -> str:
        return f"Config({self._settings!r})"
