"""Explanation builder producing fixed-cardinality summaries of a ScoreResult."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigurationError
from ..schemas import Explanations, ProofTier, RequirementEvidence, ScoreResult

REASON_COUNT = 3
RISK_COUNT = 2
MISSING_PROOF_LIMIT = 4

_IMPORTANCE_RANK = {"must": 0, "should": 1, "nice": 2}


@dataclass
class ExplanationConfig:
    """Thresholds deciding which matrix entries are worth mentioning."""

    proven_threshold: float = 0.6
    weak_threshold: float = 0.2
    strong_context: float = 0.5
    low_confidence: float = 0.5
    low_context: float = 0.3

    def __post_init__(self) -> None:
        errors: list[str] = []
        for name, value in sorted(vars(self).items()):
            try:
                number = float(value)
            except (TypeError, ValueError):
                errors.append(f"{name} must be a number, got {value!r}")
                continue
            if not 0.0 <= number <= 1.0:
                errors.append(f"{name} must lie within [0, 1]")
            setattr(self, name, number)
        if errors:
            raise ConfigurationError("Invalid explanation config", errors)


class ExplanationBuilder:
    """Derive reasons, risks and missing proof from a ScoreResult alone."""

    def __init__(self, *, config: ExplanationConfig | None = None) -> None:
        self._config = config or ExplanationConfig()

    def build(self, result: ScoreResult) -> Explanations:
        reasons = _fill(self._reasons(result), self._generic_reasons(result), REASON_COUNT)
        risks = _fill(self._risks(result), self._generic_risks(result), RISK_COUNT)
        return Explanations(
            top_reasons=tuple(reasons),
            risks=tuple(risks),
            missing_proof=tuple(self.missing_proof(result)),
        )

    def missing_proof(self, result: ScoreResult) -> list[str]:
        gaps = [
            (position, entry)
            for position, entry in enumerate(result.evidence_matrix)
            if not entry.has_verified_proof
        ]
        gaps.sort(key=lambda pair: (_IMPORTANCE_RANK[pair[1].importance], -pair[1].weight, pair[0]))
        return [_describe_gap(entry) for _, entry in gaps[:MISSING_PROOF_LIMIT]]

    def _reasons(self, result: ScoreResult) -> list[str]:
        config = self._config
        proven = sorted(
            (entry for entry in result.evidence_matrix if entry.best_verified_score >= config.proven_threshold),
            key=lambda entry: (-entry.best_verified_score, _IMPORTANCE_RANK[entry.importance]),
        )
        reasons = [
            f"{entry.label}: {_tier_phrase(entry.best_tier)} evidence (score {entry.best_verified_score:.2f})"
            for entry in proven
        ]
        strong_context = sorted(
            (signal for signal in result.context_scores.values() if signal.score >= config.strong_context),
            key=lambda signal: -signal.score,
        )
        reasons.extend(
            f"Strong {signal.category} signals (score {signal.score:.2f})" for signal in strong_context
        )
        if result.pass_gate:
            reasons.append(
                f"Verified capability {result.capability_score_verified:.2f} clears threshold {result.threshold:.2f}"
            )
        return reasons

    def _risks(self, result: ScoreResult) -> list[str]:
        config = self._config
        risks = [f"Missing verified proof for must-have: {label}" for label in result.missing_must_haves]
        if not result.pass_gate and result.capability_score_verified < result.threshold:
            risks.append(
                f"Verified capability {result.capability_score_verified:.2f} is below threshold {result.threshold:.2f}"
            )
        risks.extend(
            f"{entry.label}: evidence is weak (score {entry.best_score:.2f})"
            for entry in result.evidence_matrix
            if entry.importance != "nice" and 0.0 < entry.best_score < config.weak_threshold
        )
        if result.confidence < config.low_confidence:
            risks.append(f"Low confidence in evidence coverage ({result.confidence:.2f})")
        if result.context_score < config.low_context:
            risks.append(f"Limited context signals (score {result.context_score:.2f})")
        return risks

    @staticmethod
    def _generic_reasons(result: ScoreResult) -> list[str]:
        covered = sum(1 for entry in result.evidence_matrix if entry.items)
        return [
            f"Verified capability score {result.capability_score_verified:.2f}",
            f"Context score {result.context_score:.2f}",
            f"Evidence found for {covered} of {len(result.evidence_matrix)} requirements",
            f"Forge score {result.forge_score:.2f}",
        ]

    @staticmethod
    def _generic_risks(result: ScoreResult) -> list[str]:
        unverified = sum(1 for entry in result.evidence_matrix if not entry.has_verified_proof)
        gap = max(0.0, result.capability_score - result.capability_score_verified)
        return [
            f"{unverified} of {len(result.evidence_matrix)} requirements lack verified evidence",
            f"Unverified share of capability score {gap:.2f}",
            f"Confidence {result.confidence:.2f}",
        ]


def _fill(primary: list[str], fallback: list[str], count: int) -> list[str]:
    chosen: list[str] = []
    for text in [*primary, *fallback]:
        if text not in chosen:
            chosen.append(text)
        if len(chosen) == count:
            break
    return chosen


def _tier_phrase(tier: ProofTier) -> str:
    return tier.value.lower().replace("_", " ")


def _describe_gap(entry: RequirementEvidence) -> str:
    if not entry.items or entry.best_tier is ProofTier.NONE:
        return f"{entry.label}: no evidence"
    if entry.best_tier is ProofTier.CLAIM_ONLY:
        return f"{entry.label}: claim-only evidence"
    if entry.best_tier.is_verified:
        # verified items that carry no strength, relevance or recency
        return f"{entry.label}: verified evidence with zero score"
    return f"{entry.label}: only {_tier_phrase(entry.best_tier)} evidence"
