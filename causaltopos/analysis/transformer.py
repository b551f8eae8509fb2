"""Attention-based refinement of node embeddings over a simplicial complex.

Edges are processed as length-2 sequences ``[source, target]`` and triangles
as length-3 sequences by two independent stacks of transformer blocks. The
results are pooled back onto their nodes and combined with the original
embedding through a final linear projection.

Weights are drawn once from a Glorot-uniform distribution and never trained,
so the output is a deterministic function of the input only when ``seed`` is
fixed.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import replace
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    Generator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

import numpy as np

from ..backend import BufferPool
from ..config_models import RefinerSettings
from ..models import PHASE_PROGRESS, ComplexStats, RefinementPhase, SimplicialComplex
from .complex_builder import ComplexBuilder
from .monitoring import record_graph, update_metric

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.causal_graph import CausalGraph

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, RefinementPhase], None]


class EmbeddingDimensionError(ValueError):
    """Raised when an embedding does not have the configured dimension."""


def _glorot(rng: np.random.Generator, fan_in: int, fan_out: int) -> np.ndarray:
    limit = math.sqrt(6.0 / (fan_in + fan_out))
    return rng.uniform(-limit, limit, size=(fan_in, fan_out))


def _softmax(x: np.ndarray, axis: int = -1) -> np.ndarray:
    e = np.exp(x - np.max(x, axis=axis, keepdims=True))
    return e / e.sum(axis=axis, keepdims=True)


class MultiHeadAttention:
    """Scaled dot-product self-attention split across ``num_heads`` heads."""

    def __init__(self, dim: int, num_heads: int, rng: np.random.Generator) -> None:
        self.num_heads = num_heads
        self.key_dim = dim // num_heads
        inner = num_heads * self.key_dim
        self.wq = _glorot(rng, dim, inner)
        self.wk = _glorot(rng, dim, inner)
        self.wv = _glorot(rng, dim, inner)
        self.wo = _glorot(rng, inner, dim)

    def _split(self, x: np.ndarray) -> np.ndarray:
        batch, seq, _ = x.shape
        return x.reshape(batch, seq, self.num_heads, self.key_dim).transpose(0, 2, 1, 3)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        """Return the attention output for ``x`` of shape ``(batch, seq, dim)``."""
        batch, seq, _ = x.shape
        q = self._split(x @ self.wq)
        k = self._split(x @ self.wk)
        v = self._split(x @ self.wv)

        scores = q @ k.transpose(0, 1, 3, 2) / math.sqrt(self.key_dim)
        out = _softmax(scores, axis=-1) @ v
        out = out.transpose(0, 2, 1, 3).reshape(batch, seq, self.num_heads * self.key_dim)
        return out @ self.wo


class FeedForward:
    """Two dense layers with a ReLU in between."""

    def __init__(self, dim: int, hidden_dim: int, rng: np.random.Generator) -> None:
        self.w1 = _glorot(rng, dim, hidden_dim)
        self.b1 = np.zeros(hidden_dim)
        self.w2 = _glorot(rng, hidden_dim, dim)
        self.b2 = np.zeros(dim)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        hidden = np.maximum(x @ self.w1 + self.b1, 0.0)
        return hidden @ self.w2 + self.b2


class TransformerBlock:
    """Self-attention and feed-forward sublayers with residual connections.

    When ``use_layer_norm`` is true each residual sum is normalised over the
    feature axis with ``eps=1e-6``.
    """

    eps = 1e-6

    def __init__(
        self,
        dim: int,
        hidden_dim: int,
        num_heads: int,
        rng: np.random.Generator,
        use_layer_norm: bool = True,
    ) -> None:
        self.attention = MultiHeadAttention(dim, num_heads, rng)
        self.ffn = FeedForward(dim, hidden_dim, rng)
        self.use_layer_norm = use_layer_norm
        self.norm1 = (np.ones(dim), np.zeros(dim))
        self.norm2 = (np.ones(dim), np.zeros(dim))

    def _layer_norm(self, x: np.ndarray, params: Tuple[np.ndarray, np.ndarray]) -> np.ndarray:
        if not self.use_layer_norm:
            return x
        scale, bias = params
        mean = x.mean(axis=-1, keepdims=True)
        var = ((x - mean) ** 2).mean(axis=-1, keepdims=True)
        return (x - mean) / np.sqrt(var + self.eps) * scale + bias

    def __call__(self, x: np.ndarray) -> np.ndarray:
        out = self._layer_norm(x + self.attention(x), self.norm1)
        return self._layer_norm(out + self.ffn(out), self.norm2)


class EmbeddingRefiner:
    """Refine node embeddings with edge and triangle context.

    Parameters
    ----------
    settings:
        Model dimensions. Defaults to :class:`RefinerSettings`.
    **overrides:
        Individual settings fields overriding ``settings``.
    """

    def __init__(self, settings: Optional[RefinerSettings] = None, **overrides) -> None:
        self.settings = replace(settings) if settings else RefinerSettings()
        if overrides:
            self.settings.update(overrides)
        self.settings.validate()

        cfg = self.settings
        rng = np.random.default_rng(cfg.seed)
        d = cfg.embedding_dim
        self.edge_layers: List[TransformerBlock] = [
            TransformerBlock(d, cfg.hidden_dim, cfg.num_heads, rng, cfg.use_layer_norm)
            for _ in range(cfg.num_layers)
        ]
        self.triangle_layers: List[TransformerBlock] = [
            TransformerBlock(d, cfg.hidden_dim, cfg.num_heads, rng, cfg.use_layer_norm)
            for _ in range(cfg.num_layers)
        ]
        self.edge_aggregation: Optional[np.ndarray] = _glorot(rng, 2 * d, d)
        self.triangle_aggregation: Optional[np.ndarray] = _glorot(rng, 3 * d, d)
        self.final_projection: Optional[np.ndarray] = _glorot(rng, 3 * d, d)
        self.pool = BufferPool()
        self._disposed = False

    @property
    def embedding_dim(self) -> int:
        return self.settings.embedding_dim

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------
    def process_edges(self, edges: np.ndarray) -> np.ndarray:
        """Run ``(n, 2, d)`` edge sequences through the edge stack."""
        self._check_live()
        x = edges
        for layer in self.edge_layers:
            x = layer(x)
        return x

    def process_triangles(self, triangles: np.ndarray) -> np.ndarray:
        """Run ``(n, 3, d)`` triangle sequences through the triangle stack."""
        self._check_live()
        x = triangles
        for layer in self.triangle_layers:
            x = layer(x)
        return x

    def project(self, original: np.ndarray, edge_part: np.ndarray, tri_part: np.ndarray) -> np.ndarray:
        """Return the final ``3d -> d`` projection of ``[original, edge, tri]``."""
        self._check_live()
        return np.concatenate([original, edge_part, tri_part], axis=-1) @ self.final_projection

    # ------------------------------------------------------------------
    # Refinement
    # ------------------------------------------------------------------
    def refine(
        self,
        complex: SimplicialComplex,
        embeddings: Mapping[str, Sequence[float]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, np.ndarray]:
        """Return refined embeddings keyed like ``embeddings``.

        ``on_progress`` receives ``(percent, phase)`` at each checkpoint.

        Raises
        ------
        EmbeddingDimensionError
            If any embedding length differs from ``embedding_dim``.
        RuntimeError
            If the refiner has been disposed.
        """
        steps = self._run(complex, self._validate(embeddings))
        while True:
            try:
                phase = next(steps)
            except StopIteration as stop:
                return stop.value
            self._report(phase, on_progress)

    async def refine_async(
        self,
        complex: SimplicialComplex,
        embeddings: Mapping[str, Sequence[float]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, np.ndarray]:
        """Asynchronous variant of :meth:`refine` yielding to the loop between phases."""
        steps = self._run(complex, self._validate(embeddings))
        while True:
            try:
                phase = next(steps)
            except StopIteration as stop:
                return stop.value
            self._report(phase, on_progress)
            await asyncio.sleep(0)

    def _validate(self, embeddings: Mapping[str, Sequence[float]]) -> Dict[str, np.ndarray]:
        self._check_live()
        d = self.embedding_dim
        arrays: Dict[str, np.ndarray] = {}
        for node_id, vec in embeddings.items():
            arr = np.asarray(vec, dtype=float)
            if arr.ndim != 1 or arr.shape[0] != d:
                raise EmbeddingDimensionError(
                    f"Embedding dimension mismatch for {node_id!r}: expected {d}, got {arr.size}"
                )
            arrays[node_id] = arr
        return arrays

    def _run(
        self, complex: SimplicialComplex, embeddings: Dict[str, np.ndarray]
    ) -> Generator[RefinementPhase, None, Dict[str, np.ndarray]]:
        start = time.perf_counter()
        d = self.embedding_dim
        yield RefinementPhase.INITIALIZING_BACKEND
        yield RefinementPhase.INITIALIZING

        with self.pool.scope() as pool:
            yield RefinementPhase.PROCESSING_EDGES
            edge_parts: Dict[str, List[np.ndarray]] = {}
            pairs = [
                e for e in complex.edges if e.source in embeddings and e.target in embeddings
            ]
            if pairs:
                batch = pool.stack([np.stack([embeddings[e.source], embeddings[e.target]]) for e in pairs])
                processed = pool.track(self.process_edges(batch))
                projected = pool.track(processed.reshape(len(pairs), 2 * d) @ self.edge_aggregation)
                for edge, row in zip(pairs, projected):
                    edge_parts.setdefault(edge.source, []).append(row)
            logger.info("Processed %d edges", len(pairs))

            yield RefinementPhase.PROCESSING_TRIANGLES
            tri_parts: Dict[str, List[np.ndarray]] = {}
            triangles = [t for t in complex.triangles if all(n in embeddings for n in t)]
            if triangles:
                batch = pool.stack([np.stack([embeddings[n] for n in t]) for t in triangles])
                processed = pool.track(self.process_triangles(batch))
                projected = pool.track(
                    processed.reshape(len(triangles), 3 * d) @ self.triangle_aggregation
                )
                for tri, row in zip(triangles, projected):
                    for node_id in tri:
                        tri_parts.setdefault(node_id, []).append(row)
            logger.info("Processed %d triangles", len(triangles))

            yield RefinementPhase.COMBINING
            zero = pool.zeros(d)
            refined: Dict[str, np.ndarray] = {}
            for node_id, original in embeddings.items():
                edge_part = np.mean(edge_parts[node_id], axis=0) if node_id in edge_parts else zero
                tri_part = np.mean(tri_parts[node_id], axis=0) if node_id in tri_parts else zero
                refined[node_id] = pool.export(self.project(original, edge_part, tri_part))

        duration = time.perf_counter() - start
        update_metric("refine_duration_seconds", duration)
        logger.info("Refined %d embeddings in %.3fs", len(refined), duration)
        yield RefinementPhase.COMPLETED
        return refined

    def _report(self, phase: RefinementPhase, on_progress: Optional[ProgressCallback]) -> None:
        percent = PHASE_PROGRESS[phase]
        logger.info("Refinement %s (%d%%)", phase.value, percent)
        if on_progress is not None:
            on_progress(percent, phase)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def dispose(self) -> None:
        """Release all weights. The refiner cannot be used afterwards."""
        self.edge_layers = []
        self.triangle_layers = []
        self.edge_aggregation = None
        self.triangle_aggregation = None
        self.final_projection = None
        self._disposed = True
        logger.debug("Refiner disposed")

    def _check_live(self) -> None:
        if self._disposed:
            raise RuntimeError("EmbeddingRefiner has been disposed")

    def __enter__(self) -> "EmbeddingRefiner":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()


def refine_graph(
    graph: "CausalGraph",
    embeddings: Mapping[str, Sequence[float]],
    settings: Optional[RefinerSettings] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Tuple[Dict[str, np.ndarray], ComplexStats]:
    """Refine ``embeddings`` for ``graph`` and return them with the complex statistics.

    The configured positional encoding is added to each embedding before
    refinement.
    """
    settings = settings or RefinerSettings()
    builder = ComplexBuilder(graph)
    stats = builder.complex_stats()
    record_graph(stats.num_vertices, stats.num_edges, stats.num_triangles)

    with EmbeddingRefiner(settings) as refiner:
        # reject bad dimensions before the positional term is added
        refiner._validate(embeddings)
        prepared = builder.prepare_embeddings(
            embeddings,
            scale=settings.positional_scale,
            ordering=settings.positional_encoding,
        )
        refined = refiner.refine(builder.complex(), prepared, on_progress=on_progress)
    return refined, stats


__all__ = [
    "EmbeddingDimensionError",
    "EmbeddingRefiner",
    "FeedForward",
    "MultiHeadAttention",
    "TransformerBlock",
    "refine_graph",
]
