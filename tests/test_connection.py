"""
Unit tests for the connection registry.

Tests verify that connections are stored by uniqid in insertion order, that
removing unknown connections is a no-op, and that get_connections() leaves
out uniqids that are not registered.
"""

from switchboard import Connection
from switchboard import ConnectionHandler


def test_connection_generates_uniqid() -> None:
    """Test that connections without an explicit uniqid get a unique one."""
    first = Connection()
    second = Connection()

    assert first.uniqid
    assert first.uniqid != second.uniqid


def test_connection_keeps_options() -> None:
    """Test that connection options are readable."""
    connection = Connection("irc", host="irc.example.org", port=6667)

    assert connection.uniqid == "irc"
    assert connection.get_option("host") == "irc.example.org"
    assert connection.get_option("nick", "bot") == "bot"


def test_empty_handler_has_no_connections() -> None:
    """Test that a new handler counts and iterates nothing."""
    connections = ConnectionHandler()

    assert len(connections) == 0
    assert list(connections) == []
    assert connections.get_connections() == {}


def test_add_connection() -> None:
    """Test that added connections are counted and iterated in order."""
    first = Connection("a")
    second = Connection("b")
    connections = ConnectionHandler()

    assert connections.add_connection(first) is connections
    connections.add_connection(second)

    assert len(connections) == 2
    assert list(connections) == [first, second]
    assert first in connections
    assert "b" in connections


def test_remove_connection_by_instance() -> None:
    """Test that a connection can be removed by instance."""
    connection = Connection("a")
    connections = ConnectionHandler().add_connection(connection)

    assert connections.remove_connection(connection) is connections
    assert len(connections) == 0


def test_remove_connection_by_uniqid() -> None:
    """Test that a connection can be removed by uniqid."""
    connection = Connection("a")
    connections = ConnectionHandler().add_connection(connection)

    connections.remove_connection("a")

    assert len(connections) == 0


def test_remove_absent_connection_is_noop() -> None:
    """Test that removing an unknown connection changes nothing."""
    connection = Connection("a")
    connections = ConnectionHandler().add_connection(connection)

    connections.remove_connection("missing")
    connections.remove_connection(Connection("other"))

    assert list(connections) == [connection]


def test_get_connections_with_single_key() -> None:
    """Test that a single uniqid returns a one entry mapping."""
    first = Connection("a")
    connections = ConnectionHandler().add_connection(first)
    connections.add_connection(Connection("b"))

    assert connections.get_connections("a") == {"a": first}


def test_get_connections_omits_unknown_keys() -> None:
    """Test that unknown uniqids are silently left out."""
    first = Connection("a")
    second = Connection("b")
    connections = ConnectionHandler().add_connection(first).add_connection(second)

    result = connections.get_connections(["a", "missing", "b"])

    assert result == {"a": first, "b": second}


def test_iteration_survives_removal() -> None:
    """Test that removing connections while iterating is safe."""
    connections = ConnectionHandler()
    for uniqid in ("a", "b", "c"):
        connections.add_connection(Connection(uniqid))

    seen = []
    for connection in connections:
        seen.append(connection.uniqid)
        connections.remove_connection(connection)

    assert seen == ["a", "b", "c"]
    assert len(connections) == 0
