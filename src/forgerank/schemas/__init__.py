"""Pydantic schema definitions for evidence, jobs, configuration and results."""

from __future__ import annotations

from .candidate import CandidateEvidence
from .config import CONTEXT_CATEGORIES, AppConfig, ContextWeights, ForgeConfig, load_config
from .evidence import (
    TIER_ORDER,
    EvidenceItem,
    EvidenceSource,
    Ownership,
    ProofTier,
    RawEvidence,
)
from .job import JobSpec, Requirement
from .result import (
    BatchMetadata,
    BatchResult,
    ContextSignal,
    Explanations,
    RankedCandidate,
    RequirementEvidence,
    ScoreResult,
)

__all__ = [
    "AppConfig",
    "BatchMetadata",
    "BatchResult",
    "CandidateEvidence",
    "CONTEXT_CATEGORIES",
    "ContextSignal",
    "ContextWeights",
    "EvidenceItem",
    "EvidenceSource",
    "Explanations",
    "ForgeConfig",
    "JobSpec",
    "Ownership",
    "ProofTier",
    "RankedCandidate",
    "RawEvidence",
    "Requirement",
    "RequirementEvidence",
    "ScoreResult",
    "TIER_ORDER",
    "load_config",
]
