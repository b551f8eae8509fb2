"""Populate a :class:`CausalGraph` from extracted triples and embeddings."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from ..analysis.transformer import EmbeddingDimensionError
from ..models import CausalEdge, CausalNode, CausalTriple, IngestResult, NodeType
from ..schemas import EdgeIn, NodeIn, TripleIn
from .causal_graph import (
    CausalGraph,
    NodeNotFoundError,
    generate_edge_id,
    normalize_concept_name,
)

logger = logging.getLogger(__name__)

TripleLike = Union[CausalTriple, Mapping[str, Any]]


def _as_triple(item: TripleLike) -> CausalTriple:
    if isinstance(item, CausalTriple):
        return item
    return TripleIn.model_validate(item).to_triple()


def _ensure_concept(
    graph: CausalGraph, name: str, domain: Optional[str], result: IngestResult
) -> str:
    node_id = normalize_concept_name(name)
    node = graph.get_node(node_id)
    if node is None:
        graph.add_node(CausalNode(id=node_id, label=name.strip(), type=NodeType.CONCEPT, domain=domain))
        result.added_nodes.append(node_id)
    elif node.domain is None and domain:
        graph.update_node(node_id, domain=domain)
    return node_id


def ingest_triples(graph: CausalGraph, triples: Iterable[TripleLike]) -> IngestResult:
    """Add the concepts and relations of ``triples`` to ``graph``.

    Concepts are identified by their normalised name. Repeated assertions
    map to the same edge id and are counted as duplicates. The whole batch
    is validated before the graph is touched, so an invalid triple leaves
    ``graph`` unchanged. A concept first seen without a domain takes the
    domain of a later triple that names one.

    Parameters
    ----------
    graph:
        Graph to populate in place.
    triples:
        :class:`CausalTriple` objects or raw mappings validated with
        :class:`~causaltopos.schemas.TripleIn`.

    Returns
    -------
    IngestResult
        Ids of the nodes and edges added and the number of duplicates skipped.
    """
    batch = [_as_triple(item) for item in triples]
    result = IngestResult()
    for triple in batch:
        source = _ensure_concept(graph, triple.source, triple.source_domain, result)
        target = _ensure_concept(graph, triple.target, triple.target_domain, result)

        edge_id = generate_edge_id(source, target, triple.relation)
        if graph.has_edge(edge_id):
            logger.warning("Skipping duplicate relation %s", edge_id)
            result.duplicates += 1
            continue
        graph.add_edge(
            CausalEdge(
                id=edge_id,
                source=source,
                target=target,
                relation_type=triple.relation,
                confidence=triple.confidence,
                statement_id=triple.statement_id,
                statement_text=triple.statement_text,
            )
        )
        result.added_edges.append(edge_id)

    logger.info(
        "Ingested %d nodes and %d edges (%d duplicates)",
        len(result.added_nodes),
        len(result.added_edges),
        result.duplicates,
    )
    return result


def attach_embeddings(
    graph: CausalGraph,
    embeddings: Mapping[str, Sequence[float]],
    dim: Optional[int] = None,
) -> None:
    """Store ``embeddings`` on the matching nodes of ``graph``.

    All vectors must share one dimension, equal to ``dim`` when given.
    Nothing is written unless every vector is valid.
    """
    expected = dim
    for node_id, vec in embeddings.items():
        if not graph.has_node(node_id):
            raise NodeNotFoundError(f"Node with id {node_id} not found")
        if expected is None:
            expected = len(vec)
        elif len(vec) != expected:
            raise EmbeddingDimensionError(
                f"Embedding dimension mismatch for {node_id!r}: expected {expected}, got {len(vec)}"
            )
    for node_id, vec in embeddings.items():
        graph.update_node(node_id, embedding=[float(x) for x in vec])


def graph_from_payload(
    nodes: Iterable[Union[NodeIn, Dict[str, Any]]],
    edges: Iterable[Union[EdgeIn, Dict[str, Any]]],
) -> CausalGraph:
    """Build a graph from node and edge payloads.

    Raises :class:`~causaltopos.core.causal_graph.GraphValidationError` when
    an id repeats or an edge references an unknown node.
    """
    return CausalGraph.from_elements(
        (NodeIn.model_validate(n).to_node() for n in nodes),
        (EdgeIn.model_validate(e).to_edge() for e in edges),
    )
