from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class HubNode:
    """High degree node reported in :class:`GraphStats`."""

    id: str
    label: str
    degree: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "degree": self.degree}


@dataclass
class GraphStats:
    """Summary statistics of a causal graph."""

    node_count: int
    edge_count: int
    triangle_count: int
    domains: List[str]
    relation_type_counts: Dict[str, int]
    avg_degree: float
    density: float
    hub_nodes: List[HubNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
            "triangleCount": self.triangle_count,
            "domains": list(self.domains),
            "relationTypeCounts": dict(self.relation_type_counts),
            "avgDegree": self.avg_degree,
            "density": self.density,
            "hubNodes": [h.to_dict() for h in self.hub_nodes],
        }


@dataclass
class GraphAnalytics:
    """Centrality scores and component structure of a graph."""

    pagerank: Dict[str, float]
    betweenness: Dict[str, float]
    closeness: Dict[str, float]
    connected_components: List[List[str]]
    strongly_connected_components: List[List[str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageRank": dict(self.pagerank),
            "betweenness": dict(self.betweenness),
            "closeness": dict(self.closeness),
            "connectedComponents": [list(c) for c in self.connected_components],
            "stronglyConnectedComponents": [
                list(c) for c in self.strongly_connected_components
            ],
        }

    @property
    def feedback_loops(self) -> List[List[str]]:
        """Strongly connected components with more than one node."""
        return [c for c in self.strongly_connected_components if len(c) > 1]


@dataclass
class ComplexStats:
    """Size and density figures of a simplicial complex."""

    num_vertices: int
    num_edges: int
    num_triangles: int
    avg_degree: float
    avg_clustering: float
    density: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "numVertices": self.num_vertices,
            "numEdges": self.num_edges,
            "numTriangles": self.num_triangles,
            "avgDegree": self.avg_degree,
            "avgClustering": self.avg_clustering,
            "density": self.density,
        }


@dataclass
class IngestResult:
    """Outcome of :func:`causaltopos.core.ingest.ingest_triples`."""

    added_nodes: List[str] = field(default_factory=list)
    added_edges: List[str] = field(default_factory=list)
    duplicates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addedNodes": list(self.added_nodes),
            "addedEdges": list(self.added_edges),
            "duplicates": self.duplicates,
        }
