"""
Unit tests for plugin filters and filter chains.

Tests verify the exclusion rules of SimpleFilter (by name, by defined
method), the admit-only AllowFilter, and that a FilterChain evaluates its
filters in order and stops at the first rejection.
"""

from typing import Callable

from switchboard import AllowFilter
from switchboard import Filter
from switchboard import FilterChain
from switchboard import Plugin
from switchboard import SimpleFilter


class CountingFilter(Filter):
    """Filter returning canned answers and counting how often it is asked."""

    def __init__(self, *answers: bool, default: bool = True) -> None:
        self.answers = list(answers)
        self.default = default
        self.calls = 0

    def accept(self, plugin: Plugin) -> bool:
        self.calls += 1
        if self.answers:
            return self.answers.pop(0)
        return self.default


def test_simple_filter_accepts_everything_when_empty(
    make_plugin: Callable[..., Plugin],
) -> None:
    """Test that a new SimpleFilter accepts any plugin."""
    assert SimpleFilter().accept(make_plugin("Quit", "on_privmsg"))


def test_simple_filter_excludes_by_name(make_plugin: Callable[..., Plugin]) -> None:
    """Test that plugins listed by name are rejected."""
    simple = SimpleFilter().add_plugin_filter(["Quit", "Join"])

    assert not simple.accept(make_plugin("Quit"))
    assert not simple.accept(make_plugin("Join"))
    assert simple.accept(make_plugin("Part"))


def test_simple_filter_name_comparison_is_exact(
    make_plugin: Callable[..., Plugin],
) -> None:
    """Test that plugin names are not case-normalized by the filter."""
    simple = SimpleFilter().add_plugin_filter("Quit")

    assert simple.accept(make_plugin("quit"))


def test_simple_filter_excludes_by_method(make_plugin: Callable[..., Plugin]) -> None:
    """Test that plugins defining an excluded method are rejected."""
    simple = SimpleFilter().add_method_filter("on_privmsg")

    assert not simple.accept(make_plugin("Quit", "on_privmsg"))
    assert simple.accept(make_plugin("Join", "on_join"))


def test_simple_filter_merges_and_deduplicates() -> None:
    """Test that adding filters merges into the existing lists."""
    simple = SimpleFilter()
    simple.add_plugin_filter("Quit").add_plugin_filter(["Quit", "Join"])
    simple.add_method_filter(["on_join"]).add_method_filter("on_join")

    assert simple.plugins == ["Quit", "Join"]
    assert simple.methods == ["on_join"]


def test_simple_filter_clear_restores_accept_all(
    make_plugin: Callable[..., Plugin],
) -> None:
    """Test that clear_filters() resets both exclusion lists."""
    simple = SimpleFilter().add_plugin_filter("Quit").add_method_filter("on_join")

    assert simple.clear_filters() is simple
    assert simple.accept(make_plugin("Quit", "on_join"))


def test_allow_filter_admits_only_listed(make_plugin: Callable[..., Plugin]) -> None:
    """Test that AllowFilter rejects plugins that are not listed."""
    allow = AllowFilter(["Quit"])

    assert allow.accept(make_plugin("quit"))
    assert not allow.accept(make_plugin("Join"))

    allow.allow("join")
    assert allow.accept(make_plugin("Join"))


def test_empty_chain_accepts(make_plugin: Callable[..., Plugin]) -> None:
    """Test that a chain without filters accepts every plugin."""
    chain = FilterChain()

    assert len(chain) == 0
    assert chain.accept(make_plugin("Quit"))


def test_chain_calls_all_filters_when_all_accept(
    make_plugin: Callable[..., Plugin],
) -> None:
    """Test that every filter is consulted when none rejects."""
    filters = [CountingFilter(), CountingFilter(), CountingFilter()]
    chain = FilterChain(filters)

    assert chain.accept(make_plugin("Quit"))
    assert [f.calls for f in filters] == [1, 1, 1]


def test_chain_stops_at_first_rejection(make_plugin: Callable[..., Plugin]) -> None:
    """Test that filters after a rejecting one are not consulted."""
    first = CountingFilter(default=True)
    second = CountingFilter(default=False)
    third = CountingFilter(default=True)
    chain = FilterChain().add(first).add(second).add(third)

    assert not chain.accept(make_plugin("Quit"))
    assert (first.calls, second.calls, third.calls) == (1, 1, 0)


def test_chain_iterates_filters_in_order() -> None:
    """Test that a chain exposes its filters in the order added."""
    first = SimpleFilter()
    second = AllowFilter()
    chain = FilterChain([first]).add(second)

    assert list(chain) == [first, second]
