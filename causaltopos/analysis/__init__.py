"""Graph algorithms, simplicial features and embedding refinement.

Modules here receive a :class:`~causaltopos.core.causal_graph.CausalGraph`
as an argument and never import it at runtime.
"""

from .centrality import betweenness_centrality, closeness_centrality, pagerank
from .complex_builder import ComplexBuilder, positional_encoding, relation_one_hot
from .components import connected_components, find_triangles, strongly_connected_components
from .slices import NodeFeature, SliceManager, feature_similarity
from .transformer import EmbeddingDimensionError, EmbeddingRefiner, refine_graph

__all__ = [
    "ComplexBuilder",
    "EmbeddingDimensionError",
    "EmbeddingRefiner",
    "NodeFeature",
    "SliceManager",
    "betweenness_centrality",
    "closeness_centrality",
    "connected_components",
    "feature_similarity",
    "find_triangles",
    "pagerank",
    "positional_encoding",
    "refine_graph",
    "relation_one_hot",
    "strongly_connected_components",
]
