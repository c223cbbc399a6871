"""Core scoring engine components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .capability import CapabilityScorer, CapabilitySummary
from .classifier import ClassifierConfig, EvidenceClassifier, LinearDecay, LogisticDecay, corroborate
from .context import ContextConfig, ContextScorer
from .engine import ForgeEngine
from .explanations import ExplanationBuilder, ExplanationConfig
from .gate import AdmissionGate, GateDecision
from .matcher import MatcherConfig, RequirementMatcher, partition_evidence
from .ranking import ComposerConfig, RankComposer, compare, pool_relative_threshold, rank
from .scorers import AugmentedScorer, DeterministicScorer, RequirementScorer
from .tiers import TierTable, evidence_value

__all__ = [
    "AdmissionGate",
    "AugmentedScorer",
    "CapabilityScorer",
    "CapabilitySummary",
    "ClassifierConfig",
    "ComposerConfig",
    "ContextConfig",
    "ContextScorer",
    "DeterministicScorer",
    "EvidenceClassifier",
    "ExplanationBuilder",
    "ExplanationConfig",
    "ForgeEngine",
    "GateDecision",
    "LinearDecay",
    "LogisticDecay",
    "MatcherConfig",
    "RankComposer",
    "RequirementMatcher",
    "RequirementScorer",
    "TierTable",
    "compare",
    "corroborate",
    "evidence_value",
    "partition_evidence",
    "pool_relative_threshold",
    "rank",
]
