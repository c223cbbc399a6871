"""Proof-tier multiplier table and per-item evidence value."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ..errors import ConfigurationError
from ..schemas import TIER_ORDER, EvidenceItem, ProofTier, Requirement, RequirementEvidence

SCORE_PRECISION = 4

DEFAULT_MULTIPLIERS: dict[ProofTier, float] = {
    ProofTier.VERIFIED_ARTIFACT: 1.0,
    ProofTier.STRONG_SIGNAL: 0.7,
    ProofTier.WEAK_SIGNAL: 0.4,
    ProofTier.CLAIM_ONLY: 0.15,
    ProofTier.NONE: 0.0,
}


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def round_score(value: float) -> float:
    return round(float(value), SCORE_PRECISION)


@dataclass(frozen=True)
class TierTable:
    """Scalar multiplier per proof tier.

    The table must be strictly decreasing along the tier ladder and map
    ``NONE`` to zero; anything else is rejected at construction.
    """

    multipliers: dict[ProofTier, float] = field(default_factory=lambda: dict(DEFAULT_MULTIPLIERS))

    def __post_init__(self) -> None:
        errors: list[str] = []
        missing = [tier.value for tier in TIER_ORDER if tier not in self.multipliers]
        if missing:
            errors.append(f"missing multipliers for {', '.join(missing)}")
        else:
            values = [self.multipliers[tier] for tier in TIER_ORDER]
            if any(value < 0.0 or value > 1.0 for value in values):
                errors.append("multipliers must lie within [0, 1]")
            if any(later >= earlier for earlier, later in zip(values, values[1:])):
                errors.append("multipliers must be strictly decreasing by tier")
            if self.multipliers[ProofTier.NONE] != 0.0:
                errors.append("NONE must have a zero multiplier")
        if errors:
            raise ConfigurationError("Invalid tier table", errors)

    @classmethod
    def from_settings(cls, settings: Mapping[str, float] | None) -> "TierTable":
        if not settings:
            return cls()
        multipliers = dict(DEFAULT_MULTIPLIERS)
        for name, value in settings.items():
            try:
                tier = ProofTier(str(name).upper())
            except ValueError as exc:
                raise ConfigurationError("Invalid tier table", [f"unknown tier {name!r}"]) from exc
            try:
                multipliers[tier] = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError("Invalid tier table", [f"{name} multiplier must be a number"]) from exc
        return cls(multipliers=multipliers)

    def multiplier(self, tier: ProofTier) -> float:
        return self.multipliers.get(tier, 0.0)


def evidence_value(item: EvidenceItem, table: TierTable) -> float:
    """tierMultiplier x strength x relevance x recency for a single item."""
    return (
        table.multiplier(item.proof_tier)
        * clamp01(item.strength)
        * clamp01(item.relevance)
        * clamp01(item.recency)
    )


def best_value(items: Iterable[EvidenceItem], table: TierTable, *, verified_only: bool = False) -> float:
    values = [
        evidence_value(item, table)
        for item in items
        if not verified_only or item.proof_tier.is_verified
    ]
    # max, never sum: several weak items must not add up to a strong one
    return max(values, default=0.0)


def build_requirement_evidence(
    requirement: Requirement,
    items: Iterable[EvidenceItem],
    table: TierTable,
) -> RequirementEvidence:
    """Create the RequirementEvidence record, deriving its best scores once."""

    matched = tuple(items)
    best_tier = ProofTier.NONE
    if matched:
        # highest value wins; equal values resolve to the stronger tier
        best_item = max(
            matched,
            key=lambda item: (evidence_value(item, table), -item.proof_tier.order),
        )
        best_tier = best_item.proof_tier
    verified = best_value(matched, table, verified_only=True)
    return RequirementEvidence(
        requirement_id=requirement.id,
        label=requirement.label,
        importance=requirement.importance,
        weight=requirement.weight,
        items=matched,
        best_score=round_score(best_value(matched, table)),
        best_verified_score=round_score(verified),
        has_verified_proof=verified > 0.0,
        best_tier=best_tier,
    )
