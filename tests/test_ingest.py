import pytest
from pydantic import ValidationError

from causaltopos.analysis.transformer import EmbeddingDimensionError
from causaltopos.core.causal_graph import CausalGraph, MissingNodeError, NodeNotFoundError
from causaltopos.core.ingest import attach_embeddings, graph_from_payload, ingest_triples
from causaltopos.models import CausalTriple, RelationType


def test_ingest_triples_creates_nodes_and_edges():
    g = CausalGraph()
    result = ingest_triples(
        g,
        [
            CausalTriple("Interest Rates", "decreases", "Investment", source_domain="econ"),
            {"source": "investment", "relation": "increases", "target": "GDP", "confidence": 0.7},
        ],
    )
    assert result.added_nodes == ["interest rates", "investment", "gdp"]
    assert result.added_edges == [
        "interest rates--decreases-->investment",
        "investment--increases-->gdp",
    ]
    assert result.duplicates == 0
    assert g.get_node("interest rates").label == "Interest Rates"
    assert g.get_node("interest rates").domain == "econ"
    edge = g.get_edge("investment--increases-->gdp")
    assert edge.relation_type is RelationType.INCREASES
    assert edge.confidence == 0.7


def test_repeated_triples_are_counted_as_duplicates():
    g = CausalGraph()
    triple = {"source": "A", "relation": "causes", "target": "B"}
    ingest_triples(g, [triple])
    result = ingest_triples(g, [triple, {"source": " a ", "relation": "causes", "target": "b"}])
    assert result.duplicates == 2
    assert result.added_edges == []
    assert g.edge_count() == 1
    assert result.to_dict()["duplicates"] == 2


def test_invalid_triples_rejected():
    g = CausalGraph()
    with pytest.raises(ValidationError):
        ingest_triples(g, [{"source": "a", "relation": "explodes", "target": "b"}])
    with pytest.raises(ValidationError):
        ingest_triples(g, [{"source": "a", "relation": "causes", "target": "b", "confidence": 2}])
    assert g.node_count() == 0


def test_invalid_triple_later_in_batch_leaves_graph_untouched():
    g = CausalGraph()
    batch = [
        {"source": "rain", "relation": "causes", "target": "flood"},
        {"source": "flood", "relation": "not_a_kind", "target": "damage"},
    ]
    with pytest.raises(ValidationError):
        ingest_triples(g, batch)
    assert g.node_count() == 0
    assert g.edge_count() == 0
    assert g.revision == 0


def test_later_triple_fills_missing_domain():
    g = CausalGraph()
    ingest_triples(
        g,
        [
            {"source": "rain", "relation": "causes", "target": "flood"},
            {"source": "Rain", "relation": "increases", "target": "harvest", "sourceDomain": "weather"},
            {"source": "rain", "relation": "requires", "target": "clouds", "sourceDomain": "climate"},
        ],
    )
    assert g.get_node("rain").domain == "weather"
    assert g.get_node("flood").domain is None


def test_attach_embeddings(chain_graph):
    attach_embeddings(chain_graph, {"a": [1, 2], "b": [3, 4]})
    assert chain_graph.get_node("a").embedding == [1.0, 2.0]


def test_attach_embeddings_validates_everything_first(chain_graph):
    with pytest.raises(EmbeddingDimensionError):
        attach_embeddings(chain_graph, {"a": [1, 2], "b": [3]})
    assert chain_graph.get_node("a").embedding is None
    with pytest.raises(EmbeddingDimensionError):
        attach_embeddings(chain_graph, {"a": [1, 2]}, dim=3)
    with pytest.raises(NodeNotFoundError):
        attach_embeddings(chain_graph, {"ghost": [1.0]})


def test_graph_from_payload():
    g = graph_from_payload(
        [{"id": "a", "domain": "econ"}, {"id": "b", "label": "Bee"}],
        [{"source": "a", "target": "b", "relationType": "enables", "confidence": 0.5}],
    )
    assert g.get_node("a").label == "a"
    assert g.get_node("b").label == "Bee"
    assert g.has_edge("a--enables-->b")
    with pytest.raises(MissingNodeError):
        graph_from_payload([{"id": "a"}], [{"source": "a", "target": "x", "relationType": "causes"}])
