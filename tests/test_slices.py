import pytest

from causaltopos.analysis.slices import NodeFeature, SliceManager, feature_similarity
from causaltopos.config_models import SliceSettings
from causaltopos.models import RelationType


def test_slices_per_domain(econ_bio_graph):
    slices = SliceManager(econ_bio_graph).compute_slices()
    assert [s.domain for s in slices] == ["econ", "bio"]
    assert [len(s.morphisms) for s in slices] == [1, 1]
    assert slices[0].objects == ["A", "B"]


def test_untagged_nodes_use_default_slice(graph_factory):
    g = graph_factory([("a", "b"), ("b", "c")], domains={"c": "bio"})
    manager = SliceManager(g)
    default = manager.get_slice("default")
    assert default.objects == ["a", "b"]
    assert len(default.morphisms) == 1
    assert manager.get_slice("missing") is None


def test_cross_domain_edges_are_not_morphisms(graph_factory):
    g = graph_factory([("a", "b")], domains={"a": "econ", "b": "bio"})
    assert all(not s.morphisms for s in SliceManager(g).slices)


def test_slices_reflect_graph_changes(econ_bio_graph):
    manager = SliceManager(econ_bio_graph)
    assert len(manager.slices) == 2
    econ_bio_graph.update_node("A", domain="physics")
    assert {s.domain for s in manager.slices} == {"physics", "econ", "bio"}


def test_node_features(graph_factory):
    edges = [("hub", t) for t in "wxyz"] + [("x", "y", "inhibits")]
    g = graph_factory(edges, domains={n: "d" for n in ["hub", "w", "x", "y", "z"]})
    manager = SliceManager(g)
    features = manager.node_features(manager.get_slice("d"))
    hub = features["hub"]
    assert hub.out_degree == 4 and hub.in_degree == 0
    assert hub.is_hub and hub.is_source and not hub.is_sink
    assert hub.out_relation_types == {RelationType.CAUSES: 4}
    y = features["y"]
    assert y.is_sink
    assert y.in_relation_types == {RelationType.CAUSES: 1, RelationType.INHIBITS: 1}


def test_feature_similarity_weights():
    source = NodeFeature(0, 1, {}, {RelationType.CAUSES: 1})
    assert feature_similarity(source, source) == pytest.approx(0.3 + 0.3 + 0.4 * 0.5)
    sink = NodeFeature(1, 0, {RelationType.CAUSES: 1}, {})
    # equal degree, only the hub flag agrees, no shared kinds
    assert feature_similarity(source, sink) == pytest.approx(0.3 + 0.3 * 0.33)
    isolated = NodeFeature(0, 0)
    assert feature_similarity(isolated, isolated) == pytest.approx(0.3 + 0.3)


def test_econ_bio_functor(econ_bio_graph):
    manager = SliceManager(econ_bio_graph)
    econ, bio = manager.compute_slices()
    functor = manager.compute_functor(econ, bio)
    assert functor.object_map == {"A": "C", "B": "D"}
    assert functor.morphism_map == {"A--causes-->B": "C--causes-->D"}
    assert functor.similarity == pytest.approx(1.0)


def test_find_analogies_ranks_pairs(econ_bio_graph):
    (analogy,) = SliceManager(econ_bio_graph).find_analogies()
    assert analogy.functor.similarity == pytest.approx(1.0)
    assert [(p.source_concept, p.target_concept) for p in analogy.analogous_pairs] == [
        ("A", "C"),
        ("B", "D"),
    ]
    data = analogy.to_dict()
    assert data["sourceDomain"] == "econ"
    assert data["targetDomain"] == "bio"


def test_analogy_threshold_extremes(graph_factory):
    g = graph_factory(
        [("a1", "a2"), ("b1", "b2", "inhibits"), ("c1", "c2"), ("c2", "c3")],
        domains={
            "a1": "a", "a2": "a",
            "b1": "b", "b2": "b",
            "c1": "c", "c2": "c", "c3": "c",
        },
    )
    manager = SliceManager(g)
    assert manager.find_analogies(min_similarity=1.01) == []
    everything = manager.find_analogies(min_similarity=0.0)
    assert len(everything) == 3
    assert all(a.functor.object_map for a in everything)
    sims = [a.functor.similarity for a in everything]
    assert sims == sorted(sims, reverse=True)


def test_match_threshold_setting(econ_bio_graph):
    strict = SliceManager(econ_bio_graph, SliceSettings(match_threshold=0.99))
    econ, bio = strict.compute_slices()
    functor = strict.compute_functor(econ, bio)
    assert functor.object_map == {}
    assert functor.similarity == 0.0
