from dataclasses import dataclass, field
from typing import Any, Dict, List

from .relation import RelationType


@dataclass(frozen=True)
class SliceMorphism:
    """Edge internal to a domain slice."""

    id: str
    source: str
    target: str
    relation_type: RelationType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "relationType": self.relation_type.value,
        }


@dataclass
class ToposSlice:
    """Subgraph induced by every node sharing a domain tag."""

    id: str
    domain: str
    objects: List[str] = field(default_factory=list)
    morphisms: List[SliceMorphism] = field(default_factory=list)
    description: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "domain": self.domain,
            "objects": list(self.objects),
            "morphisms": [m.to_dict() for m in self.morphisms],
        }
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass
class SliceFunctor:
    """Partial structure preserving mapping between two slices."""

    source_slice_id: str
    target_slice_id: str
    object_map: Dict[str, str] = field(default_factory=dict)
    morphism_map: Dict[str, str] = field(default_factory=dict)
    similarity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceSliceId": self.source_slice_id,
            "targetSliceId": self.target_slice_id,
            "objectMap": dict(self.object_map),
            "morphismMap": dict(self.morphism_map),
            "similarity": self.similarity,
        }


@dataclass
class AnalogousPair:
    """Two concepts matched across domains."""

    source_concept: str
    target_concept: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceConcept": self.source_concept,
            "targetConcept": self.target_concept,
            "similarity": self.similarity,
        }


@dataclass
class CrossDomainAnalogy:
    """Functor between two slices with its ranked concept pairs."""

    source_slice: ToposSlice
    target_slice: ToposSlice
    functor: SliceFunctor
    analogous_pairs: List[AnalogousPair] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceDomain": self.source_slice.domain,
            "targetDomain": self.target_slice.domain,
            "similarity": self.functor.similarity,
            "functor": self.functor.to_dict(),
            "analogousPairs": [p.to_dict() for p in self.analogous_pairs],
        }
