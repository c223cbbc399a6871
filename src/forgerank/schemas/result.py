"""Output records produced by the scoring engine."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .evidence import EvidenceItem, ProofTier
from .job import Importance

GateState = Literal["passed", "filtered"]
ScorerName = Literal["deterministic", "augmented"]


class RequirementEvidence(BaseModel):
    """Matched evidence for one requirement plus its derived best scores."""

    requirement_id: str
    label: str
    importance: Importance
    weight: float
    items: tuple[EvidenceItem, ...] = ()
    best_score: float = 0.0
    best_verified_score: float = 0.0
    has_verified_proof: bool = False
    best_tier: ProofTier = ProofTier.NONE

    model_config = ConfigDict(extra="forbid", frozen=True)


class ContextSignal(BaseModel):
    """Score for one soft-signal category."""

    category: str
    score: float
    weight: float
    weighted: float
    evidence_count: int = 0
    matched_signals: tuple[str, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)


class ScoreResult(BaseModel):
    """Scoring outcome for one (candidate, job) pair."""

    candidate_id: str
    job_id: str
    capability_score: float
    capability_score_verified: float
    threshold: float
    pass_gate: bool
    gate_state: GateState
    missing_must_haves: tuple[str, ...] = ()
    context_scores: dict[str, ContextSignal] = Field(default_factory=dict)
    context_score: float
    adjustment: float = 0.0
    forge_score: float
    confidence: float
    evidence_matrix: tuple[RequirementEvidence, ...] = ()
    scorer: ScorerName = "deterministic"
    augmentation_fallback: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class Explanations(BaseModel):
    """Fixed-cardinality natural-language summary of a ScoreResult."""

    top_reasons: tuple[str, ...]
    risks: tuple[str, ...]
    missing_proof: tuple[str, ...]

    model_config = ConfigDict(extra="forbid", frozen=True)


class RankedCandidate(BaseModel):
    rank: int
    candidate_id: str
    name: str | None = None
    result: ScoreResult
    explanations: Explanations

    model_config = ConfigDict(extra="forbid", frozen=True)


class BatchMetadata(BaseModel):
    job_id: str
    candidate_count: int
    threshold: float
    threshold_source: Literal["fixed", "pool_relative"] = "fixed"
    used_augmentation: bool = False
    augmentation_fallbacks: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    timestamp: str | None = None
    app_version: str | None = None


class BatchResult(BaseModel):
    metadata: BatchMetadata
    results: list[RankedCandidate] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
