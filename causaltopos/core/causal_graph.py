"""Mutable directed graph of typed causal relations.

Nodes and edges live in two id-keyed arenas. Three explicit indices keep
traversal cheap:

* ``_out[u][v]`` and ``_in[v][u]`` hold the ids of every edge ``u -> v``
  so parallel relations between the same pair are tracked individually;
* ``_edge_index[u]`` holds the ids of every edge touching ``u``.

Removing a node therefore only touches the edges in its own index. Derived
analytics are cached per structural revision and dropped on the next
mutation.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import networkx as nx

from ..analysis import centrality, components
from ..models import (
    CausalEdge,
    CausalNode,
    GraphAnalytics,
    GraphStats,
    HubNode,
    RelationType,
    SimplicialComplex,
)

logger = logging.getLogger(__name__)


class GraphValidationError(ValueError):
    """Raised when a mutation would break the graph's structural invariants."""


class DuplicateNodeError(GraphValidationError):
    """Raised when adding a node whose id is already present."""


class DuplicateEdgeError(GraphValidationError):
    """Raised when adding an edge whose id is already present."""


class MissingNodeError(GraphValidationError):
    """Raised when an edge references a node that does not exist."""


class NodeNotFoundError(GraphValidationError, KeyError):
    """Raised when updating or looking up an unknown node."""


class EdgeNotFoundError(GraphValidationError, KeyError):
    """Raised when updating an unknown edge."""


def normalize_concept_name(name: str) -> str:
    """Return ``name`` lower-cased with surrounding and repeated whitespace removed."""
    return " ".join(name.lower().split())


def generate_edge_id(source: str, target: str, relation: RelationType | str) -> str:
    """Return the deterministic id of the ``source -relation-> target`` edge."""
    rel = RelationType(relation).value
    return f"{source}--{rel}-->{target}"


class CausalGraph:
    """Directed multigraph of concepts linked by typed causal relations.

    The graph offers single-writer semantics only: callers must serialise
    structural writes against reads.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, CausalNode] = {}
        self._edges: Dict[str, CausalEdge] = {}
        self._out: Dict[str, Dict[str, set[str]]] = {}
        self._in: Dict[str, Dict[str, set[str]]] = {}
        self._edge_index: Dict[str, set[str]] = {}
        self._revision = 0
        self._cache: Dict[Any, Any] = {}

    # ------------------------------------------------------------------
    # Node operations
    # ------------------------------------------------------------------
    def add_node(self, node: CausalNode) -> None:
        if node.id in self._nodes:
            raise DuplicateNodeError(f"Node with id {node.id} already exists")
        self._nodes[node.id] = replace(node)
        self._out[node.id] = {}
        self._in[node.id] = {}
        self._edge_index[node.id] = set()
        self._touch()
        logger.debug("added node %s", node.id)

    def get_node(self, node_id: str) -> Optional[CausalNode]:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def update_node(self, node_id: str, **changes: Any) -> CausalNode:
        """Update mutable fields of ``node_id`` in place and return the node."""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node with id {node_id} not found")
        if changes.get("id", node_id) != node_id:
            raise GraphValidationError("node ids are immutable")
        changes.pop("id", None)
        for key, value in changes.items():
            if not hasattr(node, key):
                raise AttributeError(f"CausalNode has no field {key!r}")
            setattr(node, key, value)
        self._touch()
        return node

    def remove_node(self, node_id: str) -> None:
        if node_id not in self._nodes:
            return
        for edge_id in list(self._edge_index[node_id]):
            self.remove_edge(edge_id)
        del self._out[node_id]
        del self._in[node_id]
        del self._edge_index[node_id]
        del self._nodes[node_id]
        self._touch()
        logger.debug("removed node %s", node_id)

    def nodes(self) -> List[CausalNode]:
        return list(self._nodes.values())

    def node_ids(self) -> List[str]:
        return list(self._nodes)

    def node_count(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Edge operations
    # ------------------------------------------------------------------
    def add_edge(self, edge: CausalEdge) -> None:
        if edge.id in self._edges:
            raise DuplicateEdgeError(f"Edge with id {edge.id} already exists")
        if edge.source not in self._nodes:
            raise MissingNodeError(f"Source node {edge.source} not found")
        if edge.target not in self._nodes:
            raise MissingNodeError(f"Target node {edge.target} not found")

        self._edges[edge.id] = replace(edge)
        self._out[edge.source].setdefault(edge.target, set()).add(edge.id)
        self._in[edge.target].setdefault(edge.source, set()).add(edge.id)
        self._edge_index[edge.source].add(edge.id)
        self._edge_index[edge.target].add(edge.id)
        self._touch()
        logger.debug("added edge %s", edge.id)

    def get_edge(self, edge_id: str) -> Optional[CausalEdge]:
        return self._edges.get(edge_id)

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def update_edge(self, edge_id: str, **changes: Any) -> CausalEdge:
        """Update mutable fields of ``edge_id``; endpoints and id are fixed."""
        edge = self._edges.get(edge_id)
        if edge is None:
            raise EdgeNotFoundError(f"Edge with id {edge_id} not found")
        for fixed in ("id", "source", "target"):
            if changes.get(fixed, getattr(edge, fixed)) != getattr(edge, fixed):
                raise GraphValidationError(f"edge {fixed} is immutable")
            changes.pop(fixed, None)
        if "relation_type" in changes:
            changes["relation_type"] = RelationType(changes["relation_type"])
        for key, value in changes.items():
            if not hasattr(edge, key):
                raise AttributeError(f"CausalEdge has no field {key!r}")
            setattr(edge, key, value)
        self._touch()
        return edge

    def remove_edge(self, edge_id: str) -> None:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            return
        _discard(self._out[edge.source], edge.target, edge_id)
        _discard(self._in[edge.target], edge.source, edge_id)
        self._edge_index[edge.source].discard(edge_id)
        self._edge_index[edge.target].discard(edge_id)
        self._touch()
        logger.debug("removed edge %s", edge_id)

    def edges(self) -> List[CausalEdge]:
        return list(self._edges.values())

    def edge_count(self) -> int:
        return len(self._edges)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def out_neighbors(self, node_id: str) -> List[str]:
        return list(self._out.get(node_id, ()))

    def in_neighbors(self, node_id: str) -> List[str]:
        return list(self._in.get(node_id, ()))

    def all_neighbors(self, node_id: str) -> List[str]:
        """Return in- and out-neighbours of ``node_id``, excluding the node itself."""
        seen = dict.fromkeys(self._out.get(node_id, ()))
        seen.update(dict.fromkeys(self._in.get(node_id, ())))
        seen.pop(node_id, None)
        return list(seen)

    def out_degree(self, node_id: str) -> int:
        return len(self._out.get(node_id, ()))

    def in_degree(self, node_id: str) -> int:
        return len(self._in.get(node_id, ()))

    def degree(self, node_id: str) -> int:
        return self.out_degree(node_id) + self.in_degree(node_id)

    def edges_between(self, source: str, target: str) -> List[CausalEdge]:
        """Return edges going from ``source`` to ``target``."""
        ids = self._out.get(source, {}).get(target, ())
        return [self._edges[e] for e in sorted(ids)]

    def connected_edges(self, node_id: str) -> List[CausalEdge]:
        """Return every edge touching ``node_id`` regardless of direction."""
        return [self._edges[e] for e in sorted(self._edge_index.get(node_id, ()))]

    def are_connected(self, a: str, b: str) -> bool:
        """Return ``True`` when an edge links ``a`` and ``b`` in either direction."""
        return b in self._out.get(a, {}) or a in self._out.get(b, {})

    # ------------------------------------------------------------------
    # Causal queries
    # ------------------------------------------------------------------
    def find_causes(self, node_id: str) -> List[CausalNode]:
        return [self._nodes[n] for n in self.in_neighbors(node_id)]

    def find_effects(self, node_id: str) -> List[CausalNode]:
        return [self._nodes[n] for n in self.out_neighbors(node_id)]

    def find_all_ancestors(self, node_id: str) -> List[CausalNode]:
        return [self._nodes[n] for n in self._reach(node_id, self._in)]

    def find_all_descendants(self, node_id: str) -> List[CausalNode]:
        return [self._nodes[n] for n in self._reach(node_id, self._out)]

    def find_root_causes(self, node_id: str) -> List[CausalNode]:
        """Return ancestors of ``node_id`` that have no causes themselves."""
        return [n for n in self.find_all_ancestors(node_id) if self.in_degree(n.id) == 0]

    def find_ultimate_effects(self, node_id: str) -> List[CausalNode]:
        """Return descendants of ``node_id`` that have no effects themselves."""
        return [
            n for n in self.find_all_descendants(node_id) if self.out_degree(n.id) == 0
        ]

    def find_shortest_path(self, source: str, target: str) -> Optional[List[str]]:
        """Return the shortest directed path as a list of ids or ``None``."""
        if source not in self._nodes or target not in self._nodes:
            return None
        if source == target:
            return [source]
        parents: Dict[str, str] = {}
        visited = {source}
        frontier = [source]
        while frontier:
            next_frontier: List[str] = []
            for node in frontier:
                for nb in self._out[node]:
                    if nb in visited:
                        continue
                    visited.add(nb)
                    parents[nb] = node
                    if nb == target:
                        path = [target]
                        while path[-1] != source:
                            path.append(parents[path[-1]])
                        return path[::-1]
                    next_frontier.append(nb)
            frontier = next_frontier
        return None

    def find_causal_paths(
        self, source: str, target: str, max_depth: int = 10
    ) -> List[List[str]]:
        """Return every simple directed path from ``source`` to ``target``.

        Paths longer than ``max_depth`` hops are not explored. Nodes on the
        active path are never revisited, which keeps the search finite on
        cyclic graphs.
        """
        if source not in self._nodes or target not in self._nodes:
            return []
        if source == target:
            return [[source]]

        paths: List[List[str]] = []
        path = [source]
        on_path = {source}

        def dfs(current: str) -> None:
            if current == target:
                paths.append(list(path))
                return
            if len(path) > max_depth:
                return
            for nb in self._out[current]:
                if nb in on_path:
                    continue
                on_path.add(nb)
                path.append(nb)
                dfs(nb)
                path.pop()
                on_path.discard(nb)

        dfs(source)
        return paths

    def _reach(self, start: str, adjacency: Dict[str, Dict[str, set[str]]]) -> List[str]:
        visited: Dict[str, None] = {}
        queue = deque(adjacency.get(start, ()))
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited[current] = None
            queue.extend(n for n in adjacency[current] if n not in visited)
        return list(visited)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------
    @property
    def revision(self) -> int:
        """Counter incremented on every structural mutation."""
        return self._revision

    def invalidate_cache(self) -> None:
        self._cache.clear()

    def _cached(self, key: Any, compute: Callable[[], Any]) -> Any:
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def pagerank(self, damping: float = 0.85, iterations: int = 20) -> Dict[str, float]:
        return dict(
            self._cached(
                ("pagerank", damping, iterations),
                lambda: centrality.pagerank(self, damping, iterations),
            )
        )

    def betweenness_centrality(self) -> Dict[str, float]:
        return dict(
            self._cached("betweenness", lambda: centrality.betweenness_centrality(self))
        )

    def closeness_centrality(self) -> Dict[str, float]:
        return dict(
            self._cached("closeness", lambda: centrality.closeness_centrality(self))
        )

    def connected_components(self) -> List[List[str]]:
        comps = self._cached("components", lambda: components.connected_components(self))
        return [list(c) for c in comps]

    def strongly_connected_components(self) -> List[List[str]]:
        sccs = self._cached(
            "sccs", lambda: components.strongly_connected_components(self)
        )
        return [list(c) for c in sccs]

    def find_triangles(self) -> List[Tuple[str, str, str]]:
        return list(self._cached("triangles", lambda: components.find_triangles(self)))

    def analytics(self) -> GraphAnalytics:
        return GraphAnalytics(
            pagerank=self.pagerank(),
            betweenness=self.betweenness_centrality(),
            closeness=self.closeness_centrality(),
            connected_components=self.connected_components(),
            strongly_connected_components=self.strongly_connected_components(),
        )

    def stats(self) -> GraphStats:
        """Return node, edge and triangle counts with degree summaries."""
        nodes = self.nodes()
        edges = self.edges()
        relation_counts: Dict[str, int] = {}
        for edge in edges:
            key = edge.relation_type.value
            relation_counts[key] = relation_counts.get(key, 0) + 1
        domains = list(dict.fromkeys(n.domain for n in nodes if n.domain))

        total_degree = sum(self.degree(n.id) for n in nodes)
        avg_degree = total_degree / len(nodes) if nodes else 0.0
        max_edges = len(nodes) * (len(nodes) - 1)
        density = len(edges) / max_edges if max_edges > 0 else 0.0
        hubs = sorted(
            (HubNode(n.id, n.label, self.degree(n.id)) for n in nodes),
            key=lambda h: h.degree,
            reverse=True,
        )[:10]

        return GraphStats(
            node_count=len(nodes),
            edge_count=len(edges),
            triangle_count=len(self.find_triangles()),
            domains=domains,
            relation_type_counts=relation_counts,
            avg_degree=avg_degree,
            density=density,
            hub_nodes=hubs,
        )

    def annotated_nodes(self) -> List[Dict[str, Any]]:
        """Return node dictionaries annotated with degree and centrality scores."""
        pr = self.pagerank()
        bc = self.betweenness_centrality()
        cc = self.closeness_centrality()
        out = []
        for node in self._nodes.values():
            data = node.to_dict()
            data.update(
                inDegree=self.in_degree(node.id),
                outDegree=self.out_degree(node.id),
                degree=self.degree(node.id),
                pageRank=pr.get(node.id, 0.0),
                betweenness=bc.get(node.id, 0.0),
                closeness=cc.get(node.id, 0.0),
            )
            out.append(data)
        return out

    def to_simplicial_complex(self) -> SimplicialComplex:
        return SimplicialComplex(
            vertices=self.nodes(), edges=self.edges(), triangles=self.find_triangles()
        )

    # ------------------------------------------------------------------
    # Domain and filtering helpers
    # ------------------------------------------------------------------
    def nodes_by_domain(self, domain: str) -> List[CausalNode]:
        return [n for n in self._nodes.values() if n.domain == domain]

    def subgraph_by_domain(self, domain: str) -> "CausalGraph":
        """Return a new graph with the nodes of ``domain`` and their internal edges."""
        sub = CausalGraph()
        for node in self.nodes_by_domain(domain):
            sub.add_node(node)
        for edge in self._edges.values():
            if sub.has_node(edge.source) and sub.has_node(edge.target):
                sub.add_edge(edge)
        return sub

    def filter_nodes(self, predicate: Callable[[CausalNode], bool]) -> List[CausalNode]:
        return [n for n in self._nodes.values() if predicate(n)]

    def filter_edges(self, predicate: Callable[[CausalEdge], bool]) -> List[CausalEdge]:
        return [e for e in self._edges.values() if predicate(e)]

    def edges_by_relation_type(self, relation: RelationType | str) -> List[CausalEdge]:
        rel = RelationType(relation)
        return self.filter_edges(lambda e: e.relation_type == rel)

    # ------------------------------------------------------------------
    # Whole-graph utilities
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()
        self._out.clear()
        self._in.clear()
        self._edge_index.clear()
        self._touch()

    def copy(self) -> "CausalGraph":
        return CausalGraph.from_elements(self.nodes(), self.edges())

    def merge(self, other: "CausalGraph") -> None:
        """Add nodes and edges of ``other`` that are not present yet.

        Edges whose endpoints are missing after merging the nodes are skipped.
        """
        for node in other.nodes():
            if node.id in self._nodes:
                logger.debug("merge: node %s already present", node.id)
                continue
            self.add_node(node)
        for edge in other.edges():
            if edge.id in self._edges:
                logger.debug("merge: edge %s already present", edge.id)
                continue
            if edge.source not in self._nodes or edge.target not in self._nodes:
                logger.warning("merge: skipping edge %s with missing endpoint", edge.id)
                continue
            self.add_edge(edge)

    @classmethod
    def from_elements(
        cls, nodes: Iterable[CausalNode], edges: Iterable[CausalEdge]
    ) -> "CausalGraph":
        """Build a graph from nodes and edges, failing on any invalid edge."""
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        for edge in edges:
            graph.add_edge(edge)
        return graph

    def to_networkx(self) -> nx.MultiDiGraph:
        """Return a :class:`networkx.MultiDiGraph` view keyed by edge id."""
        g = nx.MultiDiGraph()
        for node in self._nodes.values():
            g.add_node(node.id, label=node.label, type=node.type.value, domain=node.domain)
        for edge in self._edges.values():
            g.add_edge(
                edge.source,
                edge.target,
                key=edge.id,
                relation=edge.relation_type.value,
                confidence=edge.confidence,
            )
        return g

    def _touch(self) -> None:
        self._revision += 1
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __repr__(self) -> str:
        return f"CausalGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"


def _discard(adjacency: Dict[str, set[str]], neighbour: str, edge_id: str) -> None:
    ids = adjacency.get(neighbour)
    if ids is None:
        return
    ids.discard(edge_id)
    if not ids:
        del adjacency[neighbour]
