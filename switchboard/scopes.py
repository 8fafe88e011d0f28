"""
Per-connection plugin scopes.

The scope table records which plugins are active where. There is one global
scope holding the plugins active everywhere, plus an optional entry per
connection. A connection with its own entry only sees the plugins listed in
it, and additionally the global ones if its include_global flag is set. A
connection without an entry falls back to the global scope.

Plugin names are stored and compared lowercased.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Iterable
from typing import Optional
from typing import Union

from switchboard import connection as connection_


logger = logging.getLogger(__name__)


GLOBAL_SCOPE = "*"
"""Key the global scope is reported under by ScopeTable.to_dict()."""

CONNECTIONS = Union[
    connection_.CONNECTION_REF, Iterable[connection_.CONNECTION_REF]
]
"""A connection, a uniqid, or any iterable of either."""


@dataclass
class ScopeEntry(object):
    """The plugins admitted on one connection."""

    include_global: bool = False
    """Whether plugins of the global scope are also active here."""

    names: set[str] = field(default_factory=set)
    """Lowercased short names of the plugins explicitly admitted here."""


def _as_uniqids(connections: CONNECTIONS) -> list[str]:
    if isinstance(connections, (str, connection_.Connection)):
        return [connection_.get_uniqid(connections)]
    return [connection_.get_uniqid(c) for c in connections]


class ScopeTable(object):
    """Tracks which plugin names are in scope globally and per connection."""

    def __init__(self) -> None:
        self._global = ScopeEntry(include_global=True)
        self._entries: dict[str, ScopeEntry] = {}

    @property
    def global_names(self) -> set[str]:
        return set(self._global.names)

    def entry(self, connection: connection_.CONNECTION_REF) -> Optional[ScopeEntry]:
        """The explicit entry for a connection, or None if it has none."""
        return self._entries.get(connection_.get_uniqid(connection))

    def set_global(self, name: str) -> None:
        """Make a plugin active on every connection without its own entry."""
        self._global.names.add(name.lower())

    def set_connection_scope(
        self,
        name: str,
        connections: CONNECTIONS,
        include_global: Optional[bool] = None,
    ) -> None:
        """
        Make a plugin active on one or more connections.

        Args:
            name (str): Plugin short name.
            connections (CONNECTIONS): Connection(s) or uniqid(s).
            include_global (Optional[bool]): When given, overwrites the
                entries' include_global flag. When omitted existing flags are
                left alone and new entries start without the global plugins.
        """
        for uniqid in _as_uniqids(connections):
            entry = self._entries.get(uniqid)
            if entry is None:
                entry = self._entries[uniqid] = ScopeEntry()
                logger.debug(f"Created plugin scope for connection {uniqid}")

            if include_global is not None:
                entry.include_global = bool(include_global)

            entry.names.add(name.lower())

    def is_in_scope(
        self, name: str, connection: Optional[connection_.CONNECTION_REF] = None
    ) -> bool:
        """
        Check if a plugin is active on a connection.

        Args:
            name (str): Plugin short name.
            connection (Optional[CONNECTION_REF]): The connection to check.
                Without one, or for a connection with no entry of its own, only
                the global scope is consulted.
        """
        name = name.lower()
        entry = self.entry(connection) if connection is not None else None
        if entry is None:
            return name in self._global.names

        if name in entry.names:
            return True

        return entry.include_global and name in self._global.names

    def unscope(self, name: str) -> None:
        """Remove a plugin from the global scope and every connection scope."""
        name = name.lower()
        self._global.names.discard(name)
        for entry in self._entries.values():
            entry.names.discard(name)

    def clear(self) -> None:
        self._global = ScopeEntry(include_global=True)
        self._entries.clear()

    def to_dict(self) -> dict[str, dict[str, object]]:
        """Scopes as plain data, the global scope under GLOBAL_SCOPE."""
        data: dict[str, dict[str, object]] = {
            GLOBAL_SCOPE: {
                "include_global": True,
                "plugins": sorted(self._global.names),
            }
        }
        for uniqid, entry in self._entries.items():
            data[uniqid] = {
                "include_global": entry.include_global,
                "plugins": sorted(entry.names),
            }
        return data
