"""Pydantic configuration schemas for scoring runs and CLI YAML input."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..dates import parse_date
from ..errors import ConfigurationError

CONTEXT_CATEGORIES: tuple[str, ...] = ("teamwork", "communication", "adaptability", "ownership")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ContextWeights(BaseModel):
    """Externally supplied weights for the soft-signal categories."""

    teamwork: float = Field(default=0.25, ge=0.0, le=1.0)
    communication: float = Field(default=0.25, ge=0.0, le=1.0)
    adaptability: float = Field(default=0.25, ge=0.0, le=1.0)
    ownership: float = Field(default=0.25, ge=0.0, le=1.0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    def as_dict(self) -> dict[str, float]:
        return {category: getattr(self, category) for category in CONTEXT_CATEGORIES}


class ForgeConfig(BaseModel):
    """Per-run scoring configuration."""

    capability_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    top_k_chunks_per_requirement: int = Field(default=8, ge=1)
    strict_evidence_mode: bool = False
    corroboration_boost: bool = False
    pool_relative_tau: bool = False
    learning_velocity_boost: bool = True
    as_of: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("as_of")
    @classmethod
    def _check_as_of(cls, value: str | None) -> str | None:
        if value is not None and parse_date(value) is None:
            raise ValueError(f"cannot parse as_of date {value!r}")
        return value


def validate_model(model: type[ModelT], raw: Any, *, name: str) -> ModelT:
    """Validate ``raw`` into ``model``, converting failures into ConfigurationError."""

    if isinstance(raw, model):
        return raw
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Invalid {name}", [f"{name} must be a mapping"])
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc']) or name}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ConfigurationError(f"Invalid {name}", errors) from exc


class AppConfig(BaseModel):
    forge: ForgeConfig = Field(default_factory=ForgeConfig)
    context_weights: ContextWeights = Field(default_factory=ContextWeights)
    tiers: dict[str, float] | None = None
    aliases: dict[str, list[str]] | None = None
    classifier: dict[str, Any] | None = None
    matcher: dict[str, Any] | None = None
    context: dict[str, Any] | None = None
    composer: dict[str, Any] | None = None
    explanations: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {
            "forge": self.forge.model_dump(),
            "context_weights": self.context_weights.model_dump(),
        }
        components = self.model_dump(
            include={"tiers", "aliases", "classifier", "matcher", "context", "composer", "explanations"},
            exclude_none=True,
        )
        settings.update(components)
        return settings


def load_config(raw: Any) -> AppConfig:
    return validate_model(AppConfig, raw, name="config")
