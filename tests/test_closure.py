"""
Tests for the closure traversal.
"""

from collections import Counter

from snapstore._src.closure import compute_closure
from snapstore._src.models.store_path import StorePath


def _path(name: str) -> StorePath:
    return StorePath(f"{'1' * 32}-{name}")


class Graph:
    """Reference graph that records how often each path is queried."""

    def __init__(self, edges):
        self.edges = {_path(k): [_path(v) for v in vs] for k, vs in edges.items()}
        self.queried = Counter()
        self.calls = 0

    def query(self, paths):
        self.calls += 1
        self.queried.update(paths)
        return {p: self.edges.get(p, []) for p in paths}


def test_chain():
    graph = Graph({"a": ["b"], "b": ["c"]})
    assert compute_closure([_path("a")], graph.query) == {_path("a"), _path("b"), _path("c")}


def test_no_references():
    graph = Graph({})
    assert compute_closure([_path("a")], graph.query) == {_path("a")}


def test_empty_roots():
    graph = Graph({})
    assert compute_closure([], graph.query) == set()
    assert graph.calls == 0


def test_each_path_expanded_once():
    graph = Graph({
        "a": ["b", "c", "b"],
        "b": ["d", "d"],
        "c": ["d"],
        "d": [],
    })
    result = compute_closure([_path("a"), _path("a")], graph.query)
    assert result == {_path(n) for n in "abcd"}
    assert set(graph.queried.values()) == {1}


def test_cycle():
    graph = Graph({"a": ["b"], "b": ["a", "c"], "c": ["c"]})
    assert compute_closure([_path("a")], graph.query) == {_path("a"), _path("b"), _path("c")}
    assert set(graph.queried.values()) == {1}


def test_frontier_is_batched():
    graph = Graph({"a": ["b", "c"], "b": ["d"], "c": ["e"]})
    compute_closure([_path("a")], graph.query)
    # a, then {b, c}, then {d, e}
    assert graph.calls == 3
