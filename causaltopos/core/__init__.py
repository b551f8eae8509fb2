"""Graph store and the helpers that populate it.

``causaltopos.core.ingest`` is imported explicitly by callers; it depends on
:mod:`causaltopos.schemas`, which itself imports this package.
"""

from .causal_graph import (
    CausalGraph,
    DuplicateEdgeError,
    DuplicateNodeError,
    EdgeNotFoundError,
    GraphValidationError,
    MissingNodeError,
    NodeNotFoundError,
    generate_edge_id,
    normalize_concept_name,
)

__all__ = [
    "CausalGraph",
    "DuplicateEdgeError",
    "DuplicateNodeError",
    "EdgeNotFoundError",
    "GraphValidationError",
    "MissingNodeError",
    "NodeNotFoundError",
    "generate_edge_id",
    "normalize_concept_name",
]
