from __future__ import annotations

import math

import pytest

from forgerank.core.capability import CapabilityScorer
from forgerank.core.gate import AdmissionGate
from forgerank.core.tiers import TierTable, build_requirement_evidence
from forgerank.errors import ConfigurationError
from forgerank.schemas import EvidenceItem, EvidenceSource, ProofTier, Requirement, RequirementEvidence


def make_item(tier: ProofTier, strength: float = 1.0) -> EvidenceItem:
    return EvidenceItem(
        source=EvidenceSource.CODE_REPOSITORY,
        skill="Python",
        proof_tier=tier,
        strength=strength,
        relevance=1.0,
        recency=1.0,
    )


def entry(label: str, *items: EvidenceItem, importance: str = "should", weight: float = 0.5) -> RequirementEvidence:
    requirement = Requirement(id=label.lower(), label=label, importance=importance, weight=weight)
    return build_requirement_evidence(requirement, items, TierTable())


def test_aggregate_is_weight_normalised_mean():
    matrix = [
        entry("Python", make_item(ProofTier.VERIFIED_ARTIFACT, 0.8), weight=0.6),
        entry("Go", weight=0.4),
    ]
    summary = CapabilityScorer().score(matrix)

    assert summary.capability_score == pytest.approx(0.48)
    assert summary.capability_score_verified == pytest.approx(0.48)


def test_verified_score_excludes_weak_and_claim_tiers():
    matrix = [entry("Python", make_item(ProofTier.WEAK_SIGNAL), make_item(ProofTier.CLAIM_ONLY))]
    summary = CapabilityScorer().score(matrix)

    assert summary.capability_score == pytest.approx(0.4)
    assert summary.capability_score_verified == 0.0


def test_zero_total_weight_scores_zero():
    matrix = [entry("Python", make_item(ProofTier.VERIFIED_ARTIFACT), weight=0.0)]
    assert CapabilityScorer.aggregate(matrix, verified=True) == 0.0
    assert CapabilityScorer.aggregate([], verified=False) == 0.0


def test_confidence_blends_coverage_and_depth():
    scorer = CapabilityScorer()
    matrix = [entry("Python", make_item(ProofTier.STRONG_SIGNAL))]
    depth = math.log1p(1) / math.log1p(40)

    assert scorer.confidence([]) == 0.0
    assert scorer.confidence(matrix) == pytest.approx(0.4 + 0.35 + 0.25 * depth, abs=1e-4)
    assert scorer.confidence([entry("Python", make_item(ProofTier.CLAIM_ONLY))]) < scorer.confidence(matrix)


def test_gate_is_monotonic_in_threshold():
    matrix = [entry("Python", make_item(ProofTier.VERIFIED_ARTIFACT, 0.5))]
    verified = CapabilityScorer.aggregate(matrix, verified=True)
    thresholds = [0.0, 0.2, 0.4, 0.5, 0.6, 0.8, 1.0]

    outcomes = [AdmissionGate(threshold).decide(verified, matrix).passed for threshold in thresholds]

    assert outcomes == sorted(outcomes, reverse=True)
    assert outcomes[0] is True
    assert outcomes[-1] is False


def test_gate_is_monotonic_in_verified_score():
    gate = AdmissionGate(0.4)
    matrix = [entry("Python", make_item(ProofTier.VERIFIED_ARTIFACT))]
    outcomes = [gate.decide(score, matrix).passed for score in (0.1, 0.39, 0.4, 0.7, 1.0)]

    assert outcomes == [False, False, True, True, True]


def test_must_have_without_verified_proof_vetoes_the_gate():
    matrix = [
        entry("Testing", make_item(ProofTier.CLAIM_ONLY, 0.5), importance="must"),
        entry("API design", make_item(ProofTier.VERIFIED_ARTIFACT), importance="should"),
    ]
    decision = AdmissionGate(0.0).decide(1.0, matrix)

    assert decision.passed is False
    assert decision.state == "filtered"
    assert decision.below_threshold is False
    assert decision.missing_must_haves == ["Testing"]


@pytest.mark.parametrize("threshold", [-0.1, 1.01])
def test_gate_rejects_threshold_outside_unit_range(threshold: float):
    with pytest.raises(ConfigurationError):
        AdmissionGate(threshold)


def test_gate_treats_any_positive_verified_value_as_proof():
    tiny = entry("Testing", make_item(ProofTier.VERIFIED_ARTIFACT, 0.00001), importance="must")
    empty = entry("Testing", make_item(ProofTier.VERIFIED_ARTIFACT, 0.0), importance="must")

    assert tiny.best_verified_score == 0.0
    assert tiny.has_verified_proof is True
    assert AdmissionGate(0.0).decide(0.0, [tiny]).missing_must_haves == []

    assert empty.has_verified_proof is False
    assert AdmissionGate(0.0).decide(0.0, [empty]).missing_must_haves == ["Testing"]
