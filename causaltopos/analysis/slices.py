"""Domain slices of a causal graph and structural analogies between them.

A slice gathers every node sharing a domain tag together with the edges
internal to that domain. Two slices are compared by greedily mapping the
objects of one onto the other according to local structural features and
then counting how many internal edges the object mapping preserves.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from ..config_models import SliceSettings
from ..models import (
    AnalogousPair,
    CrossDomainAnalogy,
    RelationType,
    SliceFunctor,
    SliceMorphism,
    ToposSlice,
)
from .monitoring import increment_metric

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.causal_graph import CausalGraph

logger = logging.getLogger(__name__)


@dataclass
class NodeFeature:
    """Local structure of a node inside its slice."""

    in_degree: int
    out_degree: int
    in_relation_types: Dict[RelationType, int] = field(default_factory=dict)
    out_relation_types: Dict[RelationType, int] = field(default_factory=dict)
    is_hub: bool = False

    @property
    def total_degree(self) -> int:
        return self.in_degree + self.out_degree

    @property
    def is_source(self) -> bool:
        return self.in_degree == 0 and self.out_degree > 0

    @property
    def is_sink(self) -> bool:
        return self.out_degree == 0 and self.in_degree > 0


def _kind_overlap(a: Iterable[RelationType], b: Iterable[RelationType]) -> float:
    # two empty kind sets share nothing
    a, b = set(a), set(b)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def feature_similarity(f1: NodeFeature, f2: NodeFeature) -> float:
    """Return the weighted structural similarity of two node features.

    ``0.3`` weights the degree similarity, ``0.3`` the shared hub, source and
    sink roles (``0.33``, ``0.33`` and ``0.34``) and ``0.4`` the overlap of
    incoming and outgoing relation kinds.
    """
    max_degree = max(f1.total_degree, f2.total_degree, 1)
    degree_sim = 1.0 - abs(f1.total_degree - f2.total_degree) / max_degree

    role_sim = 0.0
    if f1.is_hub == f2.is_hub:
        role_sim += 0.33
    if f1.is_source == f2.is_source:
        role_sim += 0.33
    if f1.is_sink == f2.is_sink:
        role_sim += 0.34

    kind_sim = (
        _kind_overlap(f1.in_relation_types, f2.in_relation_types)
        + _kind_overlap(f1.out_relation_types, f2.out_relation_types)
    ) / 2

    return 0.3 * degree_sim + 0.3 * role_sim + 0.4 * kind_sim


class SliceManager:
    """Compute domain slices of ``graph`` and the analogies between them.

    Slices are recomputed on every call so results always reflect the
    current state of the graph.
    """

    def __init__(self, graph: "CausalGraph", settings: Optional[SliceSettings] = None) -> None:
        self.graph = graph
        self.settings = settings or SliceSettings()

    def compute_slices(self) -> List[ToposSlice]:
        """Return one slice per domain in first-seen order."""
        default = self.settings.default_domain
        members: Dict[str, List[str]] = {}
        for node in self.graph.nodes():
            members.setdefault(node.domain or default, []).append(node.id)

        slices = []
        for domain, node_ids in members.items():
            inside = set(node_ids)
            morphisms = [
                SliceMorphism(e.id, e.source, e.target, e.relation_type)
                for e in self.graph.edges()
                if e.source in inside and e.target in inside
            ]
            slices.append(ToposSlice(id=domain, domain=domain, objects=node_ids, morphisms=morphisms))
        logger.debug("Computed %d slices", len(slices))
        return slices

    @property
    def slices(self) -> List[ToposSlice]:
        return self.compute_slices()

    def get_slice(self, domain: str) -> Optional[ToposSlice]:
        for s in self.compute_slices():
            if s.domain == domain:
                return s
        return None

    def node_features(self, slice_: ToposSlice) -> Dict[str, NodeFeature]:
        """Return the feature record of every object of ``slice_``."""
        features: Dict[str, NodeFeature] = {}
        for node_id in slice_.objects:
            incoming = [m.relation_type for m in slice_.morphisms if m.target == node_id]
            outgoing = [m.relation_type for m in slice_.morphisms if m.source == node_id]
            features[node_id] = NodeFeature(
                in_degree=len(incoming),
                out_degree=len(outgoing),
                in_relation_types=dict(Counter(incoming)),
                out_relation_types=dict(Counter(outgoing)),
                is_hub=len(incoming) + len(outgoing) > self.settings.hub_degree,
            )
        return features

    def feature_similarity(self, f1: NodeFeature, f2: NodeFeature) -> float:
        return feature_similarity(f1, f2)

    def compute_functor(self, source: ToposSlice, target: ToposSlice) -> SliceFunctor:
        """Greedily map the objects of ``source`` onto ``target``.

        Each source object takes the most similar unclaimed target object
        when the similarity exceeds ``match_threshold``. A morphism is mapped
        when the target slice holds an edge of the same kind between the
        mapped endpoints. The functor similarity is the mean of object and
        morphism coverage.
        """
        src_features = self.node_features(source)
        tgt_features = self.node_features(target)

        object_map: Dict[str, str] = {}
        claimed: set[str] = set()
        for src_id, src_feat in src_features.items():
            best: Optional[str] = None
            best_sim = -1.0
            for tgt_id, tgt_feat in tgt_features.items():
                if tgt_id in claimed:
                    continue
                sim = feature_similarity(src_feat, tgt_feat)
                if sim > best_sim:
                    best, best_sim = tgt_id, sim
            if best is not None and best_sim > self.settings.match_threshold:
                object_map[src_id] = best
                claimed.add(best)

        morphism_map: Dict[str, str] = {}
        for m in source.morphisms:
            mapped_src = object_map.get(m.source)
            mapped_tgt = object_map.get(m.target)
            if mapped_src is None or mapped_tgt is None:
                continue
            for candidate in target.morphisms:
                if (
                    candidate.source == mapped_src
                    and candidate.target == mapped_tgt
                    and candidate.relation_type == m.relation_type
                ):
                    morphism_map[m.id] = candidate.id
                    break

        object_coverage = len(object_map) / max(len(source.objects), 1)
        morphism_coverage = len(morphism_map) / max(len(source.morphisms), 1)
        return SliceFunctor(
            source_slice_id=source.id,
            target_slice_id=target.id,
            object_map=object_map,
            morphism_map=morphism_map,
            similarity=(object_coverage + morphism_coverage) / 2,
        )

    def find_analogies(self, min_similarity: Optional[float] = None) -> List[CrossDomainAnalogy]:
        """Return analogies between every pair of slices, most similar first.

        Parameters
        ----------
        min_similarity:
            Minimum functor similarity of a reported pair. Defaults to the
            configured ``min_similarity``.
        """
        if min_similarity is None:
            min_similarity = self.settings.min_similarity

        slices = self.compute_slices()
        analogies: List[CrossDomainAnalogy] = []
        for i, source in enumerate(slices):
            for target in slices[i + 1 :]:
                functor = self.compute_functor(source, target)
                if functor.similarity < min_similarity:
                    continue
                src_features = self.node_features(source)
                tgt_features = self.node_features(target)
                pairs = [
                    AnalogousPair(
                        source_concept=self.graph.get_node(s).label,
                        target_concept=self.graph.get_node(t).label,
                        similarity=feature_similarity(src_features[s], tgt_features[t]),
                    )
                    for s, t in functor.object_map.items()
                ]
                pairs.sort(key=lambda p: p.similarity, reverse=True)
                analogies.append(CrossDomainAnalogy(source, target, functor, pairs))

        analogies.sort(key=lambda a: a.functor.similarity, reverse=True)
        increment_metric("analogies_found", len(analogies))
        logger.info("Found %d analogies across %d slices", len(analogies), len(slices))
        return analogies


__all__ = ["NodeFeature", "SliceManager", "feature_similarity"]
