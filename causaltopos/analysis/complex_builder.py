"""Structural features and matrices of the simplicial complex of a graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Literal, Mapping, Sequence, Tuple

import numpy as np

from ..models import (
    RELATION_TYPES,
    CausalEdge,
    CausalNode,
    ComplexStats,
    RelationType,
    SimplicialComplex,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.causal_graph import CausalGraph

PositionalOrdering = Literal["index", "insertion", "none"]


def relation_one_hot(relation: RelationType | str) -> List[float]:
    """Return the one-hot encoding of ``relation`` over the 13 relation kinds."""
    rel = RelationType(relation)
    return [1.0 if r is rel else 0.0 for r in RELATION_TYPES]


@dataclass
class EdgeFeatures:
    source_degree: int
    target_degree: int
    common_neighbors: int
    jaccard_coefficient: float
    relation_type_encoding: List[float]


@dataclass
class EnhancedEdge:
    edge: CausalEdge
    source_node: CausalNode
    target_node: CausalNode
    features: EdgeFeatures


@dataclass
class TriangleFeatures:
    sum_degree: int
    avg_degree: float
    transitivity_score: float
    domain_homogeneity: float
    edge_types: List[str] = field(default_factory=list)


@dataclass
class EnhancedTriangle:
    nodes: Tuple[CausalNode, CausalNode, CausalNode]
    edges: List[CausalEdge]
    features: TriangleFeatures


class ComplexBuilder:
    """Derive edge/triangle features and graph matrices from a :class:`CausalGraph`.

    The node enumeration order is fixed when the builder is created and
    defines the row and column order of every matrix. Builders are cheap;
    create a new one after mutating the graph.
    """

    def __init__(self, graph: "CausalGraph") -> None:
        self.graph = graph
        self.node_index: Dict[str, int] = {n: i for i, n in enumerate(graph.node_ids())}

    def complex(self) -> SimplicialComplex:
        return self.graph.to_simplicial_complex()

    def index_to_node(self) -> Dict[int, str]:
        return {i: n for n, i in self.node_index.items()}

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------
    def edge_features(self, edge: CausalEdge) -> EdgeFeatures:
        src_nb = set(self.graph.all_neighbors(edge.source))
        tgt_nb = set(self.graph.all_neighbors(edge.target))
        common = len(src_nb & tgt_nb)
        union = len(src_nb | tgt_nb)
        return EdgeFeatures(
            source_degree=self.graph.degree(edge.source),
            target_degree=self.graph.degree(edge.target),
            common_neighbors=common,
            jaccard_coefficient=common / union if union else 0.0,
            relation_type_encoding=relation_one_hot(edge.relation_type),
        )

    def enhanced_edges(self) -> List[EnhancedEdge]:
        out = []
        for edge in self.graph.edges():
            out.append(
                EnhancedEdge(
                    edge=edge,
                    source_node=self.graph.get_node(edge.source),
                    target_node=self.graph.get_node(edge.target),
                    features=self.edge_features(edge),
                )
            )
        return out

    def triangle_edges(self, a: str, b: str, c: str) -> List[CausalEdge]:
        """Return every edge among the three pairs of a triangle, both directions."""
        edges: List[CausalEdge] = []
        for u, v in ((a, b), (b, c), (a, c)):
            edges.extend(self.graph.edges_between(u, v))
            edges.extend(self.graph.edges_between(v, u))
        return edges

    def triangle_features(
        self, nodes: Sequence[CausalNode], edges: Sequence[CausalEdge]
    ) -> TriangleFeatures:
        degrees = [self.graph.degree(n.id) for n in nodes]
        total = sum(degrees)

        # homogeneity: 1 when all tagged members share a domain
        domains = [n.domain for n in nodes if n.domain]
        if domains:
            homogeneity = 1.0 - (len(set(domains)) - 1) / len(domains)
        else:
            homogeneity = 0.0

        return TriangleFeatures(
            sum_degree=total,
            avg_degree=total / 3,
            transitivity_score=len(edges) / 6,
            domain_homogeneity=homogeneity,
            edge_types=sorted({e.relation_type.value for e in edges}),
        )

    def enhanced_triangles(self) -> List[EnhancedTriangle]:
        out = []
        for a, b, c in self.graph.find_triangles():
            nodes = (self.graph.get_node(a), self.graph.get_node(b), self.graph.get_node(c))
            edges = self.triangle_edges(a, b, c)
            out.append(
                EnhancedTriangle(
                    nodes=nodes, edges=edges, features=self.triangle_features(nodes, edges)
                )
            )
        return out

    # ------------------------------------------------------------------
    # Matrices
    # ------------------------------------------------------------------
    def adjacency_matrix(self) -> np.ndarray:
        """Return the binary directed adjacency matrix."""
        n = len(self.node_index)
        A = np.zeros((n, n))
        for edge in self.graph.edges():
            A[self.node_index[edge.source], self.node_index[edge.target]] = 1.0
        return A

    def degree_matrix(self) -> np.ndarray:
        """Return the diagonal matrix of total (in + out) degrees."""
        degrees = [self.graph.degree(n) for n in self.node_index]
        return np.diag(np.asarray(degrees, dtype=float))

    def normalized_laplacian(self) -> np.ndarray:
        """Return ``I - D^{-1/2} A D^{-1/2}`` of the undirected graph.

        ``A`` is the symmetrised adjacency matrix and ``D`` its row sums.
        Isolated nodes keep a unit diagonal entry.
        """
        A = self.adjacency_matrix()
        A = np.maximum(A, A.T)
        deg = A.sum(axis=1)
        with np.errstate(divide="ignore"):
            d_inv_sqrt = np.where(deg > 0, 1.0 / np.sqrt(deg), 0.0)
        return np.eye(len(deg)) - d_inv_sqrt[:, None] * A * d_inv_sqrt[None, :]

    def incidence_matrix(self) -> Tuple[np.ndarray, List[str]]:
        """Return the ``edges x nodes`` incidence matrix and the row edge ids.

        Row ``e`` holds ``+1`` at the source column and ``-1`` at the target
        column. Self-loops produce an all-zero row.
        """
        edges = self.graph.edges()
        B = np.zeros((len(edges), len(self.node_index)))
        for row, edge in enumerate(edges):
            B[row, self.node_index[edge.source]] += 1.0
            B[row, self.node_index[edge.target]] -= 1.0
        return B, [e.id for e in edges]

    # ------------------------------------------------------------------
    # Clustering and summary
    # ------------------------------------------------------------------
    def clustering_coefficient(self, node_id: str) -> float:
        """Return the local clustering coefficient of ``node_id``.

        The number of linked neighbour pairs is divided by ``k(k-1)/2`` for a
        node with ``k`` distinct neighbours.
        """
        neighbours = self.graph.all_neighbors(node_id)
        k = len(neighbours)
        if k < 2:
            return 0.0
        links = 0
        for i in range(k):
            for j in range(i + 1, k):
                if self.graph.are_connected(neighbours[i], neighbours[j]):
                    links += 1
        return links / (k * (k - 1) / 2)

    def global_clustering(self) -> float:
        """Return the mean local clustering coefficient over all nodes."""
        if not self.node_index:
            return 0.0
        return sum(self.clustering_coefficient(n) for n in self.node_index) / len(
            self.node_index
        )

    def complex_stats(self) -> ComplexStats:
        stats = self.graph.stats()
        return ComplexStats(
            num_vertices=stats.node_count,
            num_edges=stats.edge_count,
            num_triangles=stats.triangle_count,
            avg_degree=stats.avg_degree,
            avg_clustering=self.global_clustering(),
            density=stats.density,
        )

    # ------------------------------------------------------------------
    # Positional encoding
    # ------------------------------------------------------------------
    def prepare_embeddings(
        self,
        embeddings: Mapping[str, Sequence[float]],
        *,
        scale: float = 0.1,
        ordering: PositionalOrdering = "index",
    ) -> Dict[str, np.ndarray]:
        """Return ``embeddings`` shifted by a scaled sinusoidal positional encoding.

        ``ordering`` selects the position of each node. ``"index"`` uses the
        builder enumeration and ``"insertion"`` the order in which nodes were
        added to the graph. Neither carries causal meaning. ``"none"`` returns
        the embeddings unchanged. Nodes unknown to the graph use position 0.
        """
        if ordering == "none":
            return {k: np.asarray(v, dtype=float) for k, v in embeddings.items()}
        if ordering == "insertion":
            positions = {n: i for i, n in enumerate(self.graph.node_ids())}
        elif ordering == "index":
            positions = self.node_index
        else:
            raise ValueError(f"unknown positional ordering: {ordering}")

        out: Dict[str, np.ndarray] = {}
        for node_id, vec in embeddings.items():
            arr = np.asarray(vec, dtype=float)
            pe = positional_encoding(positions.get(node_id, 0), arr.shape[0])
            out[node_id] = arr + scale * pe
        return out


def positional_encoding(position: int, dim: int) -> np.ndarray:
    """Return the sinusoidal encoding of ``position`` with ``dim`` components."""
    i = np.arange(dim)
    angles = position / np.power(10000.0, (2 * (i // 2)) / max(dim, 1))
    return np.where(i % 2 == 0, np.sin(angles), np.cos(angles))


__all__ = [
    "ComplexBuilder",
    "EdgeFeatures",
    "EnhancedEdge",
    "EnhancedTriangle",
    "TriangleFeatures",
    "positional_encoding",
    "relation_one_hot",
]
