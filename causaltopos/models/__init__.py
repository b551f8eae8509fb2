from .graph import CausalEdge, CausalNode, CausalTriple, SimplicialComplex
from .relation import RELATION_TYPES, NodeType, RelationType
from .results import ComplexStats, GraphAnalytics, GraphStats, HubNode, IngestResult
from .task_status import PHASE_PROGRESS, RefinementPhase
from .topos import (
    AnalogousPair,
    CrossDomainAnalogy,
    SliceFunctor,
    SliceMorphism,
    ToposSlice,
)

__all__ = [
    "AnalogousPair",
    "CausalEdge",
    "CausalNode",
    "CausalTriple",
    "ComplexStats",
    "CrossDomainAnalogy",
    "GraphAnalytics",
    "GraphStats",
    "HubNode",
    "IngestResult",
    "NodeType",
    "PHASE_PROGRESS",
    "RELATION_TYPES",
    "RefinementPhase",
    "RelationType",
    "SimplicialComplex",
    "SliceFunctor",
    "SliceMorphism",
    "ToposSlice",
]
