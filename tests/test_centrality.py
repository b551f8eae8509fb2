import networkx as nx
import pytest

from causaltopos.analysis.centrality import betweenness_centrality, closeness_centrality, pagerank
from causaltopos.core.causal_graph import CausalGraph


def test_pagerank_sums_to_one_without_dangling_nodes(graph_factory):
    g = graph_factory([("a", "b"), ("b", "c"), ("c", "a"), ("a", "c")])
    scores = pagerank(g)
    assert sum(scores.values()) == pytest.approx(1.0)
    assert scores["c"] > scores["b"]


def test_pagerank_leaks_mass_at_dangling_nodes(chain_graph):
    scores = pagerank(chain_graph)
    assert sum(scores.values()) < 1.0
    assert all(v > 0 for v in scores.values())


def test_pagerank_empty_graph():
    assert pagerank(CausalGraph()) == {}


def test_pagerank_uses_damping(graph_factory):
    g = graph_factory([("a", "b"), ("b", "a")], nodes=["x", "y"])
    scores = pagerank(g, damping=0.5, iterations=1)
    assert scores["x"] == pytest.approx(0.5 / 4)
    assert scores["a"] == pytest.approx(0.5 / 4 + 0.5 * 0.25)


def test_isolated_node_has_zero_betweenness(graph_factory):
    g = graph_factory([("a", "b"), ("b", "c")], nodes=["lonely"])
    bc = betweenness_centrality(g)
    assert bc["lonely"] == 0.0
    assert bc["b"] > 0.0


def test_betweenness_matches_networkx(graph_factory):
    edges = [("a", "b"), ("b", "c"), ("a", "d"), ("d", "c"), ("c", "e"), ("e", "a")]
    g = graph_factory(edges)
    expected = nx.betweenness_centrality(nx.DiGraph(edges), normalized=True)
    ours = betweenness_centrality(g)
    for node, value in expected.items():
        assert ours[node] == pytest.approx(value)


def test_betweenness_small_graph_unnormalised(graph_factory):
    g = graph_factory([("a", "b")])
    assert betweenness_centrality(g) == {"a": 0.0, "b": 0.0}


def test_closeness(chain_graph):
    cc = closeness_centrality(chain_graph)
    # a reaches 3 nodes at total distance 6
    assert cc["a"] == pytest.approx(1.0 * 3 / 6)
    assert cc["c"] == pytest.approx((1 / 3) * 1.0)
    assert cc["d"] == 0.0


def test_closeness_single_node(graph_factory):
    g = graph_factory([], nodes=["solo"])
    assert closeness_centrality(g) == {"solo": 0.0}
