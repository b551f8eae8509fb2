"""Centrality measures on directed causal graphs.

All functions work on the unweighted directed structure exposed by
:class:`~causaltopos.core.causal_graph.CausalGraph`. Parallel edges between
the same ordered pair count once.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Dict, List

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.causal_graph import CausalGraph


def pagerank(
    graph: "CausalGraph", damping: float = 0.85, iterations: int = 20
) -> Dict[str, float]:
    """Return PageRank scores computed by synchronous power iteration.

    Every node starts with mass ``1/n``. At each step a node passes its
    score to its out-neighbours divided by its out-degree. Nodes without
    outgoing edges do not redistribute their mass, so the total leaks below
    one whenever such dangling nodes exist. This is an accepted
    approximation; the scores still sum to one when every node has an
    outgoing edge.

    Parameters
    ----------
    graph:
        Graph to score.
    damping:
        Probability of following an edge instead of teleporting.
    iterations:
        Fixed number of power iterations.
    """
    nodes = graph.node_ids()
    n = len(nodes)
    if n == 0:
        return {}

    pr = {node: 1.0 / n for node in nodes}
    base = (1.0 - damping) / n
    for _ in range(iterations):
        new_pr: Dict[str, float] = {}
        for node in nodes:
            incoming = 0.0
            for src in graph.in_neighbors(node):
                out_deg = graph.out_degree(src)
                if out_deg > 0:
                    incoming += pr[src] / out_deg
            new_pr[node] = base + damping * incoming
        pr = new_pr
    return pr


def betweenness_centrality(graph: "CausalGraph") -> Dict[str, float]:
    """Return betweenness centrality using Brandes' algorithm.

    A BFS from every source accumulates the number of shortest paths
    ``sigma`` and the predecessor lists. Dependencies are then propagated
    back in order of non-increasing distance. Scores are normalised by
    ``1/((n-1)(n-2))`` when ``n > 2``.
    """
    nodes = graph.node_ids()
    centrality = {node: 0.0 for node in nodes}

    for source in nodes:
        dist: Dict[str, int] = {source: 0}
        sigma: Dict[str, float] = {source: 1.0}
        pred: Dict[str, List[str]] = {}
        order: List[str] = []
        queue = deque([source])

        while queue:
            v = queue.popleft()
            order.append(v)
            for w in graph.out_neighbors(v):
                if w not in dist:
                    dist[w] = dist[v] + 1
                    queue.append(w)
                if dist[w] == dist[v] + 1:
                    sigma[w] = sigma.get(w, 0.0) + sigma[v]
                    pred.setdefault(w, []).append(v)

        delta = dict.fromkeys(order, 0.0)
        for w in reversed(order):
            for v in pred.get(w, ()):
                delta[v] += sigma[v] / sigma[w] * (1.0 + delta[w])
            if w != source:
                centrality[w] += delta[w]

    n = len(nodes)
    if n > 2:
        factor = 1.0 / ((n - 1) * (n - 2))
        for node in centrality:
            centrality[node] *= factor
    return centrality


def closeness_centrality(graph: "CausalGraph") -> Dict[str, float]:
    """Return closeness centrality restricted to reachable nodes.

    For a source reaching ``r`` other nodes at total distance ``s`` the
    score is ``(r / (n - 1)) * (r / s)``. Unreachable nodes do not
    contribute, and a node reaching nothing scores ``0``.
    """
    nodes = graph.node_ids()
    n = len(nodes)
    centrality: Dict[str, float] = {}

    for source in nodes:
        dist = _bfs_distances(graph, source)
        reachable = len(dist) - 1
        if reachable > 0:
            total = sum(dist.values())
            centrality[source] = (reachable / (n - 1)) * (reachable / total)
        else:
            centrality[source] = 0.0
    return centrality


def _bfs_distances(graph: "CausalGraph", source: str) -> Dict[str, int]:
    dist = {source: 0}
    queue = deque([source])
    while queue:
        v = queue.popleft()
        for w in graph.out_neighbors(v):
            if w not in dist:
                dist[w] = dist[v] + 1
                queue.append(w)
    return dist
