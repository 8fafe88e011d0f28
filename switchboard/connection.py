"""
Connection identities and the registry that tracks them.

The plugin handler never talks to a socket. All it needs from a connection
is a stable unique identifier to key plugin scopes by, so Connection here is
little more than that identifier plus the options a driver attached to it.
"""

import logging
import uuid
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import Optional
from typing import Union


logger = logging.getLogger(__name__)


class Connection(object):
    """An opaque session identity used as a plugin scoping key."""

    def __init__(self, uniqid: Optional[str] = None, **options: Any) -> None:
        self._uniqid = uniqid if uniqid is not None else uuid.uuid4().hex
        self.options: dict[str, Any] = dict(options)
        """Connection specific settings, e.g. host or nick."""

    @property
    def uniqid(self) -> str:
        """The identifier the connection is registered and scoped under."""
        return self._uniqid

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def __repr__(self) -> str:
        return f"Connection({self._uniqid!r})"


CONNECTION_REF = Union[Connection, str]
"""Either a connection instance or its uniqid."""


def get_uniqid(connection: CONNECTION_REF) -> str:
    """Returns the uniqid of a connection or passes a uniqid through."""
    if isinstance(connection, Connection):
        return connection.uniqid
    return str(connection)


class ConnectionHandler(object):
    """
    Flat registry of the connections a bot currently has open.

    Connections are kept in insertion order and keyed by uniqid. Lookups for
    unknown uniqids are not errors: removal is a no-op and get_connections()
    leaves them out of its result.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def add_connection(self, connection: Connection) -> "ConnectionHandler":
        """
        Add a connection to the registry.

        Args:
            connection (Connection): The connection to add. A connection with
                the same uniqid replaces the existing entry.
        Returns:
            ConnectionHandler: self, for chaining.
        """
        self._connections[connection.uniqid] = connection
        logger.debug(f"Added connection {connection.uniqid}")
        return self

    def remove_connection(self, connection: CONNECTION_REF) -> "ConnectionHandler":
        """
        Remove a connection, given either the instance or its uniqid.
        Unknown connections are ignored.
        """
        uniqid = get_uniqid(connection)
        if self._connections.pop(uniqid, None) is not None:
            logger.debug(f"Removed connection {uniqid}")
        return self

    def get_connections(
        self, keys: Optional[Union[str, Iterable[str]]] = None
    ) -> dict[str, Connection]:
        """
        Get connections keyed by uniqid.

        Args:
            keys (Optional[Union[str, Iterable[str]]]): One or more uniqids to
                limit the result to. Defaults to every connection.
        Returns:
            dict[str, Connection]: The requested connections. Uniqids that are
                not registered are silently omitted.
        """
        if keys is None:
            return dict(self._connections)

        if isinstance(keys, str):
            keys = [keys]

        return {
            key: self._connections[key] for key in keys if key in self._connections
        }

    def __contains__(self, connection: CONNECTION_REF) -> bool:
        return get_uniqid(connection) in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))
