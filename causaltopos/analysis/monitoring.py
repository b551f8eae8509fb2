"""Prometheus monitoring utilities."""

from __future__ import annotations

import logging

from prometheus_client import REGISTRY, Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)


def _metric(cls, name: str, desc: str, **kwargs):
    """Return a metric, reusing existing collectors when present."""
    existing = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
    if existing:
        return existing
    return cls(name, desc, **kwargs)


graph_nodes = _metric(Gauge, "graph_nodes", "Nodes in the last analysed graph")
graph_edges = _metric(Gauge, "graph_edges", "Edges in the last analysed graph")
graph_triangles = _metric(Gauge, "graph_triangles", "2-simplices in the last analysed graph")
refine_duration_seconds = _metric(
    Gauge,
    "refine_duration_seconds",
    "Duration of the last embedding refinement in seconds",
)
analogies_found = _metric(
    Counter,
    "analogies_found",
    "Cross-domain analogies reported",
)

_METRICS = {
    "graph_nodes": graph_nodes,
    "graph_edges": graph_edges,
    "graph_triangles": graph_triangles,
    "refine_duration_seconds": refine_duration_seconds,
    "analogies_found": analogies_found,
}


def start_metrics_server(port: int = 8000) -> None:
    """Start an HTTP server exposing the Prometheus metrics."""
    logger.info("Starting metrics server on port %d", port)
    start_http_server(port)


def update_metric(name: str, value: float, labels: dict[str, str] | None = None) -> None:
    """Set one of the default gauges.

    Parameters
    ----------
    name:
        Name of the metric to update. Unknown names are ignored.
    value:
        Value to set.
    labels:
        Optional label mapping for metrics that use ``labelnames``.
    """
    g = _METRICS.get(name)
    if g is None or not isinstance(g, Gauge):
        return
    if labels:
        g.labels(**labels).set(value)
    else:
        g.set(value)


def increment_metric(name: str, amount: float = 1.0) -> None:
    """Increment the counter ``name`` by ``amount``."""
    c = _METRICS.get(name)
    if c is None or not isinstance(c, Counter):
        return
    c.inc(amount)


def record_graph(node_count: int, edge_count: int, triangle_count: int) -> None:
    """Publish the size of an analysed graph."""
    update_metric("graph_nodes", node_count)
    update_metric("graph_edges", edge_count)
    update_metric("graph_triangles", triangle_count)
