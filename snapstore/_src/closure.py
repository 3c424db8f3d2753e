import logging
from typing import Callable, Dict, Iterable, Set

from snapstore._src.models.store_path import StorePath


logger = logging.getLogger(__name__)

QueryEdges = Callable[[list[StorePath]], Dict[StorePath, Iterable[StorePath]]]


def compute_closure(roots: Iterable[StorePath], query_edges: QueryEdges) -> Set[StorePath]:
    """Return every path reachable from `roots` through `query_edges`.

    The walk is breadth first. Each frontier is looked up with a single
    `query_edges` call and a path is expanded at most once, so cycles and
    duplicate edges do not cause repeated work.

    Parameters
    ----------
    roots: Iterable[StorePath]
        Paths to start from, they are part of the closure
    query_edges: QueryEdges
        Batched lookup returning the outgoing edges of each given path

    Returns
    -------
    closure: Set[StorePath]
    """
    closure: Set[StorePath] = set()
    roots = list(dict.fromkeys(roots))
    frontier = roots
    while frontier:
        closure.update(frontier)
        edges = query_edges(frontier)
        next_frontier = {}
        for path in frontier:
            for ref in edges.get(path, ()):
                if ref not in closure:
                    next_frontier[ref] = None
        frontier = list(next_frontier)
    logger.debug("closure of %d root(s) has %d path(s)", len(roots), len(closure))
    return closure
