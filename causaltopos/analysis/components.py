"""Component structure and triangle enumeration."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Dict, List, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.causal_graph import CausalGraph


def connected_components(graph: "CausalGraph") -> List[List[str]]:
    """Return weakly connected components, treating every edge as undirected."""
    visited: set[str] = set()
    components: List[List[str]] = []
    for start in graph.node_ids():
        if start in visited:
            continue
        component: List[str] = []
        visited.add(start)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            component.append(current)
            for nb in graph.all_neighbors(current):
                if nb not in visited:
                    visited.add(nb)
                    queue.append(nb)
        components.append(component)
    return components


def strongly_connected_components(graph: "CausalGraph") -> List[List[str]]:
    """Return strongly connected components using Tarjan's algorithm.

    The depth-first search keeps its own call stack of ``(node, neighbours,
    position)`` frames, so long causal chains do not exhaust the interpreter
    recursion limit. Components are emitted in reverse topological order of
    the condensation, as in the recursive formulation.
    """
    index: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    on_stack: set[str] = set()
    stack: List[str] = []
    sccs: List[List[str]] = []
    counter = 0

    for root in graph.node_ids():
        if root in index:
            continue
        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        frames: List[Tuple[str, List[str], int]] = [(root, graph.out_neighbors(root), 0)]

        while frames:
            node, nbs, pos = frames[-1]
            if pos < len(nbs):
                frames[-1] = (node, nbs, pos + 1)
                w = nbs[pos]
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    stack.append(w)
                    on_stack.add(w)
                    frames.append((w, graph.out_neighbors(w), 0))
                elif w in on_stack:
                    lowlink[node] = min(lowlink[node], index[w])
                continue

            frames.pop()
            if frames:
                parent = frames[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == index[node]:
                scc: List[str] = []
                while True:
                    w = stack.pop()
                    on_stack.discard(w)
                    scc.append(w)
                    if w == node:
                        break
                sccs.append(scc)
    return sccs


def find_triangles(graph: "CausalGraph") -> List[Tuple[str, str, str]]:
    """Return every triangle as a canonical ``(a, b, c)`` tuple with ``a < b < c``.

    Three nodes form a triangle when each of the three pairs is linked by at
    least one edge in either direction. For every node ``a`` the search walks
    neighbours ``b > a`` and their neighbours ``c > b``, so the cost grows with
    neighbourhood sizes rather than with the number of node triples.
    """
    triangles: List[Tuple[str, str, str]] = []
    for a in graph.node_ids():
        for b in sorted(graph.all_neighbors(a)):
            if b <= a:
                continue
            for c in sorted(graph.all_neighbors(b)):
                if c <= b:
                    continue
                if graph.are_connected(a, c):
                    triangles.append((a, b, c))
    return triangles
