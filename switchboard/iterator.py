"""
Filtering iteration over plugin collections.

Dispatch can nest: a plugin reacting to one event may trigger another
dispatch over the same plugins before the first one has finished. Every
traversal therefore gets its own cursor (an index into an immutable
snapshot) and its own PluginIterator, so advancing one never moves another.
"""

from typing import Any
from typing import Iterator
from typing import Optional
from typing import Sequence
from typing import Union

from switchboard.filters import FilterChain
from switchboard.plugin import Plugin


class ListCursor(object):
    """A position in an immutable snapshot of a sequence."""

    def __init__(self, items: Sequence[Any]) -> None:
        self._items = tuple(items)
        self._index = 0

    def current(self) -> Optional[Any]:
        """The element under the cursor, or None past the end."""
        if self.valid():
            return self._items[self._index]
        return None

    def key(self) -> Optional[int]:
        if self.valid():
            return self._index
        return None

    def next(self) -> None:
        self._index += 1

    def rewind(self) -> None:
        self._index = 0

    def valid(self) -> bool:
        return self._index < len(self._items)

    def __len__(self) -> int:
        return len(self._items)


class PluginIterator(object):
    """
    Yields only the plugins a FilterChain accepts.

    The chain is held by reference: filters added to it while the iterator is
    in use apply to elements the iterator has not reached yet.

    The iterator is positioned on the first accepted plugin when it is built.
    After that only next() and rewind() move it, so current(), key() and
    valid() are pure reads and each element is checked against the chain at
    most once per pass.
    """

    def __init__(
        self,
        cursor: Union[ListCursor, Sequence[Plugin]],
        chain: Optional[FilterChain] = None,
    ) -> None:
        if not isinstance(cursor, ListCursor):
            cursor = ListCursor(cursor)
        self._cursor = cursor
        self._chain = chain if chain is not None else FilterChain()
        self._pending_advance = False
        self._fetch()

    @property
    def chain(self) -> FilterChain:
        return self._chain

    def get_inner_iterator(self) -> ListCursor:
        return self._cursor

    def _fetch(self) -> None:
        """Move forward until the cursor is on an accepted plugin or the end."""
        while self._cursor.valid() and not self._chain.accept(self._cursor.current()):
            self._cursor.next()

    def rewind(self) -> None:
        self._pending_advance = False
        self._cursor.rewind()
        self._fetch()

    def current(self) -> Optional[Plugin]:
        return self._cursor.current()

    def key(self) -> Optional[int]:
        return self._cursor.key()

    def next(self) -> None:
        self._cursor.next()
        self._fetch()

    def valid(self) -> bool:
        return self._cursor.valid()

    # -----Python iterator protocol--------------------------------------------

    def __iter__(self) -> Iterator[Plugin]:
        return self

    def __next__(self) -> Plugin:
        # The cursor stays on the returned plugin until the following call.
        if self._pending_advance:
            self._pending_advance = False
            self.next()

        if not self.valid():
            raise StopIteration

        self._pending_advance = True
        return self._cursor.current()
