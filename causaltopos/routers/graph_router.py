"""Stateless graph analysis endpoints.

Every request carries the complete graph (nodes and edges) in its body, so
the service keeps no state between calls. Payloads that do not describe a
valid graph are rejected with ``400``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from causaltopos.analysis.monitoring import record_graph
from causaltopos.analysis.slices import SliceManager
from causaltopos.analysis.transformer import EmbeddingDimensionError, refine_graph
from causaltopos.core.causal_graph import CausalGraph, GraphValidationError
from causaltopos.core.ingest import graph_from_payload
from causaltopos.schemas import AnalogyRequest, AnalyticsRequest, ComputeRequest, GraphPayload
from causaltopos.utils.config import (
    DEFAULT_CONFIG_PATH,
    get_analytics_settings,
    get_refiner_settings,
    get_slice_settings,
    load_config,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/graph", tags=["graph"])


@lru_cache(maxsize=8)
def _load_config(path: str) -> Dict[str, Any]:
    return load_config(path)


def get_config() -> Dict[str, Any]:
    """Return the configuration named by ``CAUSALTOPOS_CONFIG``, loaded once per path."""
    return _load_config(os.environ.get("CAUSALTOPOS_CONFIG", DEFAULT_CONFIG_PATH))


def _build_graph(payload: GraphPayload) -> CausalGraph:
    try:
        return graph_from_payload(payload.nodes, payload.edges)
    except (GraphValidationError, ValidationError, ValueError) as exc:
        logger.info("Rejected graph payload: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))




@router.post("/analytics", summary="Centrality, components and statistics")
def graph_analytics(payload: AnalyticsRequest, config: Dict[str, Any] = Depends(get_config)) -> dict:
    """Return annotated nodes, analytics and summary statistics of the graph.

    ``damping`` and ``iterations`` fall back to the ``analytics`` section of
    the configuration. Each entry of ``paths`` is answered with its shortest
    path and every causal path up to ``analytics.max_path_depth`` hops.
    """
    settings = get_analytics_settings(config)
    damping = payload.damping if payload.damping is not None else settings.damping
    iterations = payload.iterations if payload.iterations is not None else settings.iterations

    graph = _build_graph(payload)
    stats = graph.stats()
    record_graph(stats.node_count, stats.edge_count, stats.triangle_count)
    analytics = graph.analytics()
    analytics.pagerank = graph.pagerank(damping, iterations)
    nodes = graph.annotated_nodes()
    for node in nodes:
        node["pageRank"] = analytics.pagerank.get(node["id"], 0.0)
    return {
        "nodes": nodes,
        "analytics": analytics.to_dict(),
        "feedbackLoops": analytics.feedback_loops,
        "stats": stats.to_dict(),
        "causalPaths": [
            {
                "source": query.source,
                "target": query.target,
                "shortest": graph.find_shortest_path(query.source, query.target),
                "paths": graph.find_causal_paths(
                    query.source, query.target, max_depth=settings.max_path_depth
                ),
            }
            for query in payload.paths
        ],
    }


@router.post("/embeddings/compute", summary="Refine node embeddings")
async def compute_embeddings(
    payload: ComputeRequest, config: Dict[str, Any] = Depends(get_config)
) -> dict:
    """Refine the supplied embeddings with edge and triangle context.

    Fields missing from ``settings`` come from the ``refiner`` section of the
    configuration, except the embedding dimension, which is taken from the
    vectors themselves. Refinement runs in a worker thread.
    """
    graph = _build_graph(payload)
    unknown = [n for n in payload.embeddings if not graph.has_node(n)]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown nodes: {', '.join(unknown)}")

    settings = get_refiner_settings(config)
    explicit = payload.settings.model_dump(exclude_unset=True) if payload.settings else {}
    settings.update(explicit)
    if "embedding_dim" not in explicit and payload.embeddings:
        settings.embedding_dim = len(next(iter(payload.embeddings.values())))
        if "num_heads" not in explicit and settings.embedding_dim % settings.num_heads:
            settings.num_heads = 1
    try:
        settings.validate()
        refined, stats = await asyncio.to_thread(refine_graph, graph, payload.embeddings, settings)
    except (EmbeddingDimensionError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return {
        "embeddings": {k: v.tolist() for k, v in refined.items()},
        "stats": stats.to_dict(),
    }


@router.post("/analogies", summary="Cross-domain structural analogies")
def find_analogies(payload: AnalogyRequest, config: Dict[str, Any] = Depends(get_config)) -> dict:
    """Return analogies between the domain slices of the graph.

    Thresholds and the default domain come from the ``slices`` section of the
    configuration. ``minSimilarity`` in the body overrides the threshold.
    """
    graph = _build_graph(payload)
    manager = SliceManager(graph, get_slice_settings(config))
    analogies = manager.find_analogies(payload.min_similarity)
    return {
        "slices": [s.to_dict() for s in manager.compute_slices()],
        "analogies": [a.to_dict() for a in analogies],
    }
