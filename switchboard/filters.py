"""
Filters that decide which plugins an event is delivered to.

A filter answers one question, accept(plugin). A FilterChain combines any
number of them with logical AND, evaluated in the order they were added and
stopping at the first rejection. Filters must not keep per-call state that
changes their answer for the same plugin.
"""

import abc
from typing import Iterable
from typing import Iterator
from typing import Union

from switchboard.plugin import Plugin


NAMES = Union[str, Iterable[str]]
"""A single name or any iterable of names."""


def _as_list(names: NAMES) -> list[str]:
    if isinstance(names, str):
        return [names]
    return list(names)


class Filter(abc.ABC):
    """Base class for plugin filters."""

    @abc.abstractmethod
    def accept(self, plugin: Plugin) -> bool:
        """Returns True to include the plugin, False to skip it."""


class SimpleFilter(Filter):
    """
    Excludes plugins by short name or by the methods they define.

    A new SimpleFilter accepts everything. Plugin names are compared exactly
    as given, not case-normalized.
    """

    def __init__(self) -> None:
        self._plugins: list[str] = []
        self._methods: list[str] = []

    @property
    def plugins(self) -> list[str]:
        """Excluded plugin names."""
        return list(self._plugins)

    @property
    def methods(self) -> list[str]:
        """Excluded method names."""
        return list(self._methods)

    def add_plugin_filter(self, plugins: NAMES) -> "SimpleFilter":
        """Exclude one or more plugins by short name."""
        for name in _as_list(plugins):
            if name not in self._plugins:
                self._plugins.append(name)
        return self

    def add_method_filter(self, methods: NAMES) -> "SimpleFilter":
        """Exclude every plugin that defines any of the given methods."""
        for method in _as_list(methods):
            if method not in self._methods:
                self._methods.append(method)
        return self

    def clear_filters(self) -> "SimpleFilter":
        self._plugins = []
        self._methods = []
        return self

    def accept(self, plugin: Plugin) -> bool:
        if not self._plugins and not self._methods:
            return True

        if plugin.name in self._plugins:
            return False

        for method in self._methods:
            if callable(getattr(plugin, method, None)):
                return False

        return True


class AllowFilter(Filter):
    """Only accepts plugins whose short name is listed (case-insensitive)."""

    def __init__(self, plugins: NAMES = ()) -> None:
        self._plugins: set[str] = {name.lower() for name in _as_list(plugins)}

    def allow(self, plugins: NAMES) -> "AllowFilter":
        self._plugins.update(name.lower() for name in _as_list(plugins))
        return self

    def accept(self, plugin: Plugin) -> bool:
        return plugin.name.lower() in self._plugins


class FilterChain(object):
    """Ordered filters combined with short-circuit AND."""

    def __init__(self, filters: Iterable[Filter] = ()) -> None:
        self._filters: list[Filter] = list(filters)

    def add(self, filter_: Filter) -> "FilterChain":
        self._filters.append(filter_)
        return self

    def accept(self, plugin: Plugin) -> bool:
        """
        Check a plugin against every filter in order.

        Returns:
            bool: True if there are no filters or all of them accept the plugin.
                Filters after the first rejecting one are not consulted.
        """
        for filter_ in self._filters:
            if not filter_.accept(plugin):
                return False
        return True

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(list(self._filters))
