from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .relation import NodeType, RelationType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CausalNode:
    """A concept stored in the causal graph."""

    id: str
    label: str
    type: NodeType = NodeType.CONCEPT
    domain: Optional[str] = None
    description: Optional[str] = None
    embedding: Optional[List[float]] = None
    umap2d: Optional[Tuple[float, float]] = None
    umap3d: Optional[Tuple[float, float, float]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.type = NodeType(self.type)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "type": self.type.value,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at.isoformat(),
        }
        if self.domain is not None:
            data["domain"] = self.domain
        if self.description is not None:
            data["description"] = self.description
        if self.embedding is not None:
            data["embedding"] = list(self.embedding)
        if self.umap2d is not None:
            data["umap2d"] = list(self.umap2d)
        if self.umap3d is not None:
            data["umap3d"] = list(self.umap3d)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CausalNode":
        """Create a node from an upstream payload."""
        created = data.get("createdAt")
        umap2d = data.get("umap2d")
        umap3d = data.get("umap3d")
        return cls(
            id=data["id"],
            label=data.get("label", data["id"]),
            type=NodeType(data.get("type") or NodeType.CONCEPT),
            domain=data.get("domain"),
            description=data.get("description"),
            embedding=list(data["embedding"]) if data.get("embedding") is not None else None,
            umap2d=tuple(umap2d) if umap2d is not None else None,
            umap3d=tuple(umap3d) if umap3d is not None else None,
            metadata=dict(data.get("metadata") or {}),
            created_at=datetime.fromisoformat(created) if created else _utcnow(),
        )


@dataclass
class CausalEdge:
    """A typed causal relation between two nodes."""

    id: str
    source: str
    target: str
    relation_type: RelationType
    weight: Optional[float] = None
    confidence: Optional[float] = None
    statement_id: Optional[str] = None
    statement_text: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.relation_type = RelationType(self.relation_type)
        for name in ("weight", "confidence"):
            value = getattr(self, name)
            if value is not None and not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "relationType": self.relation_type.value,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at.isoformat(),
        }
        for key, value in (
            ("weight", self.weight),
            ("confidence", self.confidence),
            ("statementId", self.statement_id),
            ("statementText", self.statement_text),
        ):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CausalEdge":
        """Create an edge from an upstream payload."""
        created = data.get("createdAt")
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            relation_type=RelationType(data.get("relationType") or data["relation_type"]),
            weight=data.get("weight"),
            confidence=data.get("confidence"),
            statement_id=data.get("statementId"),
            statement_text=data.get("statementText"),
            metadata=dict(data.get("metadata") or {}),
            created_at=datetime.fromisoformat(created) if created else _utcnow(),
        )


@dataclass
class CausalTriple:
    """A ``(source, relation, target)`` assertion from the extraction stage."""

    source: str
    relation: RelationType
    target: str
    confidence: float = 1.0
    source_domain: Optional[str] = None
    target_domain: Optional[str] = None
    statement_id: Optional[str] = None
    statement_text: Optional[str] = None

    def __post_init__(self) -> None:
        self.relation = RelationType(self.relation)


@dataclass
class SimplicialComplex:
    """Vertices, edges and triangles derived from a causal graph."""

    vertices: List[CausalNode]
    edges: List[CausalEdge]
    triangles: List[Tuple[str, str, str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vertices": [v.to_dict() for v in self.vertices],
            "edges": [e.to_dict() for e in self.edges],
            "triangles": [list(t) for t in self.triangles],
        }
