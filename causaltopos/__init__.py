"""Causal knowledge graph analytics and topological embedding refinement."""

__version__ = "0.1.0"

# Heavy modules are loaded on first attribute access. They are also
# available directly from ``causaltopos.core`` and ``causaltopos.analysis``.

__all__: list[str] = [
    "__version__",
    "CausalGraph",
    "CausalNode",
    "CausalEdge",
    "CausalTriple",
    "RelationType",
    "NodeType",
    "ComplexBuilder",
    "EmbeddingRefiner",
    "SliceManager",
    "refine_graph",
    "ingest_triples",
    "attach_embeddings",
    "RefinerSettings",
    "load_config",
]


def __getattr__(name: str):
    if name == "CausalGraph":
        from .core.causal_graph import CausalGraph as _CG

        return _CG
    if name in {"CausalNode", "CausalEdge", "CausalTriple", "RelationType", "NodeType"}:
        from . import models as _models

        return getattr(_models, name)
    if name == "ComplexBuilder":
        from .analysis.complex_builder import ComplexBuilder as _CB

        return _CB
    if name in {"EmbeddingRefiner", "refine_graph"}:
        from .analysis import transformer as _transformer

        return getattr(_transformer, name)
    if name == "SliceManager":
        from .analysis.slices import SliceManager as _SM

        return _SM
    if name in {"ingest_triples", "attach_embeddings"}:
        from .core import ingest as _ingest

        return getattr(_ingest, name)
    if name == "RefinerSettings":
        from .config_models import RefinerSettings as _RS

        return _RS
    if name == "load_config":
        from .utils.config import load_config as _load_config

        return _load_config
    raise AttributeError(name)
