"""Request payloads accepted by the ingestion helpers and the HTTP API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, confloat, constr

from causaltopos.config_models import RefinerSettingsModel
from causaltopos.core.causal_graph import generate_edge_id
from causaltopos.models import CausalEdge, CausalNode, CausalTriple, NodeType, RelationType


class TripleIn(BaseModel):
    """A causal assertion produced by an upstream extractor."""

    model_config = ConfigDict(populate_by_name=True)

    source: constr(strip_whitespace=True, min_length=1)
    relation: RelationType
    target: constr(strip_whitespace=True, min_length=1)
    confidence: confloat(ge=0, le=1) = 1.0
    source_domain: Optional[str] = Field(None, alias="sourceDomain")
    target_domain: Optional[str] = Field(None, alias="targetDomain")
    statement_id: Optional[str] = Field(None, alias="statementId")
    statement_text: Optional[str] = Field(None, alias="statementText")

    def to_triple(self) -> CausalTriple:
        return CausalTriple(
            source=self.source,
            relation=self.relation,
            target=self.target,
            confidence=self.confidence,
            source_domain=self.source_domain,
            target_domain=self.target_domain,
            statement_id=self.statement_id,
            statement_text=self.statement_text,
        )


class NodeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: constr(min_length=1)
    label: Optional[str] = None
    type: NodeType = NodeType.CONCEPT
    domain: Optional[str] = None
    description: Optional[str] = None
    embedding: Optional[List[float]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_node(self) -> CausalNode:
        return CausalNode(
            id=self.id,
            label=self.label or self.id,
            type=self.type,
            domain=self.domain,
            description=self.description,
            embedding=self.embedding,
            metadata=dict(self.metadata),
        )


class EdgeIn(BaseModel):
    """Edge payload. ``id`` defaults to the deterministic edge id."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    source: constr(min_length=1)
    target: constr(min_length=1)
    relation_type: RelationType = Field(alias="relationType")
    weight: Optional[confloat(ge=0, le=1)] = None
    confidence: Optional[confloat(ge=0, le=1)] = None
    statement_id: Optional[str] = Field(None, alias="statementId")
    statement_text: Optional[str] = Field(None, alias="statementText")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_edge(self) -> CausalEdge:
        edge_id = self.id or generate_edge_id(self.source, self.target, self.relation_type)
        return CausalEdge(
            id=edge_id,
            source=self.source,
            target=self.target,
            relation_type=self.relation_type,
            weight=self.weight,
            confidence=self.confidence,
            statement_id=self.statement_id,
            statement_text=self.statement_text,
            metadata=dict(self.metadata),
        )


class GraphPayload(BaseModel):
    """Nodes and edges of a graph sent in a request body."""

    nodes: List[NodeIn] = Field(default_factory=list)
    edges: List[EdgeIn] = Field(default_factory=list)


class PathQuery(BaseModel):
    source: constr(min_length=1)
    target: constr(min_length=1)


class AnalyticsRequest(GraphPayload):
    """Graph plus optional PageRank overrides and path queries."""

    damping: Optional[confloat(gt=0, lt=1)] = None
    iterations: Optional[int] = Field(None, gt=0)
    paths: List[PathQuery] = Field(default_factory=list)


class ComputeRequest(GraphPayload):
    """Graph plus the input embeddings to refine."""

    embeddings: Dict[str, List[float]]
    settings: Optional[RefinerSettingsModel] = None


class AnalogyRequest(GraphPayload):
    model_config = ConfigDict(populate_by_name=True)

    min_similarity: Optional[confloat(ge=0, le=1)] = Field(None, alias="minSimilarity")
