import os
import sys
from typing import Dict, Iterable, Optional, Tuple

import pytest

# Ensure the repository root is importable without relying on ``PYTHONPATH``.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from causaltopos.core.causal_graph import CausalGraph, generate_edge_id  # noqa: E402
from causaltopos.models import CausalEdge, CausalNode  # noqa: E402


def make_graph(
    edges: Iterable[Tuple[str, ...]],
    nodes: Iterable[str] = (),
    domains: Optional[Dict[str, str]] = None,
) -> CausalGraph:
    """Build a graph from ``(source, target[, relation])`` tuples."""
    domains = domains or {}
    graph = CausalGraph()
    edges = list(edges)
    ids = list(dict.fromkeys(list(nodes) + [n for e in edges for n in e[:2]]))
    for node_id in ids:
        graph.add_node(CausalNode(id=node_id, label=node_id.upper(), domain=domains.get(node_id)))
    for edge in edges:
        source, target = edge[0], edge[1]
        relation = edge[2] if len(edge) > 2 else "causes"
        graph.add_edge(
            CausalEdge(
                id=generate_edge_id(source, target, relation),
                source=source,
                target=target,
                relation_type=relation,
            )
        )
    return graph


@pytest.fixture
def graph_factory():
    return make_graph


@pytest.fixture
def chain_graph():
    """a -> b -> c -> d"""
    return make_graph([("a", "b"), ("b", "c"), ("c", "d")])


@pytest.fixture
def econ_bio_graph():
    return make_graph(
        [("A", "B"), ("C", "D")],
        domains={"A": "econ", "B": "econ", "C": "bio", "D": "bio"},
    )
