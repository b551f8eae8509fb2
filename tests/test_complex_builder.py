import itertools

import numpy as np
import pytest

from causaltopos.analysis.complex_builder import (
    ComplexBuilder,
    positional_encoding,
    relation_one_hot,
)
from causaltopos.models import RELATION_TYPES


@pytest.fixture
def triangle_graph(graph_factory):
    return graph_factory(
        [("a", "b"), ("b", "c", "enables"), ("a", "c"), ("c", "a"), ("c", "d")],
        domains={"a": "econ", "b": "econ", "c": "bio"},
    )


def test_relation_one_hot():
    vec = relation_one_hot("inhibits")
    assert len(vec) == len(RELATION_TYPES) == 13
    assert sum(vec) == 1.0
    assert vec[RELATION_TYPES.index("inhibits")] == 1.0


def test_complex(triangle_graph):
    cx = ComplexBuilder(triangle_graph).complex()
    assert len(cx.vertices) == 4
    assert len(cx.edges) == 5
    assert cx.triangles == [("a", "b", "c")]


def test_edge_features(triangle_graph):
    builder = ComplexBuilder(triangle_graph)
    features = {e.edge.id: e.features for e in builder.enhanced_edges()}
    ab = features["a--causes-->b"]
    assert ab.source_degree == 3
    assert ab.target_degree == 2
    assert ab.common_neighbors == 1
    # N(a) = {b, c}, N(b) = {a, c}
    assert ab.jaccard_coefficient == pytest.approx(1 / 3)
    assert sum(ab.relation_type_encoding) == 1.0


def test_triangle_features(triangle_graph):
    (tri,) = ComplexBuilder(triangle_graph).enhanced_triangles()
    assert [n.id for n in tri.nodes] == ["a", "b", "c"]
    assert len(tri.edges) == 4
    feats = tri.features
    assert feats.transitivity_score == pytest.approx(4 / 6)
    assert feats.sum_degree == 3 + 2 + 4
    assert feats.avg_degree == pytest.approx(3.0)
    # two distinct tags among three tagged members
    assert feats.domain_homogeneity == pytest.approx(1 - 1 / 3)
    assert feats.edge_types == ["causes", "enables"]


def test_homogeneity_without_tags(graph_factory):
    g = graph_factory(list(itertools.combinations("xyz", 2)))
    (tri,) = ComplexBuilder(g).enhanced_triangles()
    assert tri.features.domain_homogeneity == 0.0


def test_adjacency_and_degree(triangle_graph):
    builder = ComplexBuilder(triangle_graph)
    A = builder.adjacency_matrix()
    idx = builder.node_index
    assert A.shape == (4, 4)
    assert A[idx["a"], idx["b"]] == 1.0
    assert A[idx["b"], idx["a"]] == 0.0
    assert A.sum() == 5
    D = builder.degree_matrix()
    assert np.allclose(np.diag(D), [3, 2, 4, 1])
    assert builder.index_to_node()[idx["c"]] == "c"


def test_normalized_laplacian(graph_factory):
    g = graph_factory([("a", "b"), ("b", "c")], nodes=["iso"])
    builder = ComplexBuilder(g)
    L = builder.normalized_laplacian()
    assert np.allclose(L, L.T)
    assert np.allclose(np.diag(L), 1.0)
    eig = np.linalg.eigvalsh(L)
    assert eig.min() >= -1e-9
    assert eig.max() <= 2 + 1e-9


def test_incidence_matrix(graph_factory):
    g = graph_factory([("a", "b"), ("b", "b")])
    B, edge_ids = ComplexBuilder(g).incidence_matrix()
    assert edge_ids == ["a--causes-->b", "b--causes-->b"]
    assert B.tolist() == [[1.0, -1.0], [0.0, 0.0]]


def test_clustering(triangle_graph):
    builder = ComplexBuilder(triangle_graph)
    assert builder.clustering_coefficient("a") == pytest.approx(1.0)
    assert builder.clustering_coefficient("c") == pytest.approx(1 / 3)
    assert builder.clustering_coefficient("d") == 0.0
    assert builder.global_clustering() == pytest.approx((1 + 1 + 1 / 3 + 0) / 4)


def test_complex_stats(triangle_graph):
    stats = ComplexBuilder(triangle_graph).complex_stats()
    assert stats.num_vertices == 4
    assert stats.num_edges == 5
    assert stats.num_triangles == 1
    assert stats.to_dict()["numTriangles"] == 1


def test_positional_encoding_values():
    pe = positional_encoding(0, 6)
    assert np.allclose(pe, [0, 1, 0, 1, 0, 1])
    pe = positional_encoding(3, 4)
    assert pe[0] == pytest.approx(np.sin(3))
    assert pe[1] == pytest.approx(np.cos(3))


def test_prepare_embeddings_orderings(chain_graph):
    builder = ComplexBuilder(chain_graph)
    emb = {n: np.zeros(4) for n in chain_graph.node_ids()}
    shifted = builder.prepare_embeddings(emb, scale=0.1)
    assert np.allclose(shifted["c"], 0.1 * positional_encoding(2, 4))

    insertion = builder.prepare_embeddings(emb, ordering="insertion")
    assert np.allclose(insertion["c"], shifted["c"])

    untouched = builder.prepare_embeddings(emb, ordering="none")
    assert np.allclose(untouched["c"], 0.0)

    with pytest.raises(ValueError):
        builder.prepare_embeddings(emb, ordering="random")
