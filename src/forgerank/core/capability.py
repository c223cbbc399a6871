"""Capability scoring over the evidence matrix."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from ..schemas import ProofTier, RequirementEvidence
from .tiers import clamp01, round_score


@dataclass(slots=True)
class CapabilitySummary:
    """Aggregate capability view of one evidence matrix."""

    capability_score: float
    capability_score_verified: float
    confidence: float


class CapabilityScorer:
    """Reduce per-requirement best scores into capability and confidence."""

    CONFIDENCE_WEIGHTS: dict[str, float] = {
        "coverage": 0.40,
        "strong_coverage": 0.35,
        "depth": 0.25,
    }
    DEPTH_SATURATION_ITEMS = 40

    def score(self, matrix: Sequence[RequirementEvidence]) -> CapabilitySummary:
        return CapabilitySummary(
            capability_score=self.aggregate(matrix, verified=False),
            capability_score_verified=self.aggregate(matrix, verified=True),
            confidence=self.confidence(matrix),
        )

    @staticmethod
    def aggregate(matrix: Sequence[RequirementEvidence], *, verified: bool) -> float:
        """Weight-normalised mean of requirement scores; 0 when undefined."""

        total_weight = sum(entry.weight for entry in matrix)
        if total_weight <= 0:
            return 0.0
        weighted = sum(
            entry.weight * (entry.best_verified_score if verified else entry.best_score)
            for entry in matrix
        )
        return round_score(clamp01(weighted / total_weight))

    def confidence(self, matrix: Sequence[RequirementEvidence]) -> float:
        if not matrix:
            return 0.0
        total = len(matrix)
        covered = sum(1 for entry in matrix if _has_tier(entry, _CORROBORATED_TIERS))
        strong = sum(1 for entry in matrix if _has_tier(entry, _VERIFIED_TIERS))
        items = sum(len(entry.items) for entry in matrix)
        depth = clamp01(math.log1p(items) / math.log1p(self.DEPTH_SATURATION_ITEMS))

        weights = self.CONFIDENCE_WEIGHTS
        value = (
            weights["coverage"] * covered / total
            + weights["strong_coverage"] * strong / total
            + weights["depth"] * depth
        )
        return round_score(clamp01(value))


_VERIFIED_TIERS = frozenset({ProofTier.VERIFIED_ARTIFACT, ProofTier.STRONG_SIGNAL})
_CORROBORATED_TIERS = _VERIFIED_TIERS | {ProofTier.WEAK_SIGNAL}


def _has_tier(entry: RequirementEvidence, tiers: frozenset[ProofTier]) -> bool:
    return any(item.proof_tier in tiers for item in entry.items)
