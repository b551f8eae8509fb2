from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator


@dataclass
class AnalyticsSettings:
    """Parameters of the centrality and path algorithms."""

    damping: float = 0.85
    iterations: int = 20
    max_path_depth: int = 10

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyticsSettings":
        """Create ``AnalyticsSettings`` from a raw dictionary."""
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in cls.__dataclass_fields__})


@dataclass
class RefinerSettings:
    """Configuration of the embedding refiner.

    ``dropout_rate`` is accepted for compatibility with upstream payloads but
    no dropout is applied during refinement.
    """

    embedding_dim: int = 128
    hidden_dim: int = 256
    num_heads: int = 4
    num_layers: int = 2
    dropout_rate: float = 0.1
    use_layer_norm: bool = True
    seed: Optional[int] = None
    # index|insertion|none
    positional_encoding: str = "index"
    positional_scale: float = 0.1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RefinerSettings":
        """Create ``RefinerSettings`` from a raw dictionary."""
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in cls.__dataclass_fields__})

    def update(self, overrides: Dict[str, Any]) -> None:
        """Update fields from a dictionary of overrides."""
        for key, value in overrides.items():
            if hasattr(self, key) and value is not None:
                setattr(self, key, value)

    def validate(self) -> None:
        """Raise ``ValueError`` when the dimensions cannot form attention heads."""
        RefinerSettingsModel.model_validate(self.__dict__)


class RefinerSettingsModel(BaseModel):
    """Pydantic model for validating refiner settings."""

    embedding_dim: int = Field(128, gt=0)
    hidden_dim: int = Field(256, gt=0)
    num_heads: int = Field(4, gt=0)
    num_layers: int = Field(2, ge=0)
    dropout_rate: float = Field(0.1, ge=0.0, lt=1.0)
    use_layer_norm: bool = True
    seed: Optional[int] = None
    positional_encoding: Literal["index", "insertion", "none"] = "index"
    positional_scale: float = 0.1

    @model_validator(mode="after")
    def _heads_fit(self) -> "RefinerSettingsModel":
        if self.num_heads > self.embedding_dim:
            raise ValueError("num_heads must not exceed embedding_dim")
        return self

    def to_settings(self) -> RefinerSettings:
        """Convert to :class:`RefinerSettings`."""
        return RefinerSettings.from_dict(self.model_dump())


@dataclass
class SliceSettings:
    """Thresholds used when matching domain slices."""

    min_similarity: float = 0.2
    match_threshold: float = 0.3
    hub_degree: int = 3
    default_domain: str = "default"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SliceSettings":
        """Create ``SliceSettings`` from a raw dictionary."""
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in cls.__dataclass_fields__})
