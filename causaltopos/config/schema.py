"""Typed configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from causaltopos.config_models import RefinerSettingsModel


class AnalyticsConfig(BaseModel):
    """Centrality algorithm settings."""

    model_config = ConfigDict(extra="ignore")

    damping: float = Field(0.85, gt=0.0, lt=1.0, description="PageRank damping factor")
    iterations: int = Field(20, gt=0, description="PageRank power iterations")
    max_path_depth: int = Field(10, gt=0, description="Hop limit for causal path search")


class SliceConfig(BaseModel):
    """Cross-domain analogy settings."""

    model_config = ConfigDict(extra="ignore")

    min_similarity: float = Field(0.2, ge=0.0, le=1.0)
    match_threshold: float = Field(0.3, ge=0.0, le=1.0)
    hub_degree: int = Field(3, ge=0)
    default_domain: str = "default"


class MonitorConfig(BaseModel):
    """Prometheus exporter options."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = Field(False, description="Expose metrics over HTTP")
    port: int = Field(8000, gt=0, lt=65536)


class ConfigSchema(BaseModel):
    """Root configuration schema."""

    model_config = ConfigDict(extra="allow")

    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    refiner: RefinerSettingsModel = Field(default_factory=RefinerSettingsModel)
    slices: SliceConfig = Field(default_factory=SliceConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
