from __future__ import annotations

import pytest

from forgerank.core.tiers import (
    DEFAULT_MULTIPLIERS,
    TierTable,
    best_value,
    build_requirement_evidence,
    evidence_value,
)
from forgerank.errors import ConfigurationError
from forgerank.schemas import TIER_ORDER, EvidenceItem, EvidenceSource, ProofTier, Requirement


def make_item(tier: ProofTier, *, strength: float = 1.0, relevance: float = 1.0, recency: float = 1.0) -> EvidenceItem:
    return EvidenceItem(
        source=EvidenceSource.CODE_REPOSITORY,
        skill="Python",
        snippet="Built a Python service",
        proof_tier=tier,
        strength=strength,
        relevance=relevance,
        recency=recency,
    )


def test_default_multipliers_decrease_along_the_ladder():
    values = [DEFAULT_MULTIPLIERS[tier] for tier in TIER_ORDER]
    assert values == sorted(values, reverse=True)
    assert len(set(values)) == len(values)
    assert DEFAULT_MULTIPLIERS[ProofTier.NONE] == 0.0


@pytest.mark.parametrize("stronger, weaker", list(zip(TIER_ORDER, TIER_ORDER[1:])))
def test_stronger_tier_never_scores_below_weaker_tier(stronger: ProofTier, weaker: ProofTier):
    table = TierTable()
    assert evidence_value(make_item(stronger), table) > evidence_value(make_item(weaker), table)


def test_three_weak_items_never_beat_one_strong_item():
    table = TierTable()
    weak = [make_item(ProofTier.WEAK_SIGNAL) for _ in range(3)]
    strong = [make_item(ProofTier.STRONG_SIGNAL)]

    assert best_value(weak, table) < best_value(strong, table)
    assert best_value(weak, table) == pytest.approx(0.4)


def test_verified_only_ignores_claims():
    table = TierTable()
    items = [make_item(ProofTier.CLAIM_ONLY), make_item(ProofTier.WEAK_SIGNAL)]
    assert best_value(items, table) == pytest.approx(0.4)
    assert best_value(items, table, verified_only=True) == 0.0


def test_tier_table_rejects_non_monotonic_values():
    with pytest.raises(ConfigurationError) as exc:
        TierTable.from_settings({"WEAK_SIGNAL": 0.9})
    assert "strictly decreasing" in str(exc.value)


def test_tier_table_rejects_non_zero_none_and_unknown_tiers():
    with pytest.raises(ConfigurationError):
        TierTable.from_settings({"NONE": 0.05, "CLAIM_ONLY": 0.1})
    with pytest.raises(ConfigurationError):
        TierTable.from_settings({"GOLD": 1.0})


def test_tier_table_accepts_lowercase_names():
    table = TierTable.from_settings({"strong_signal": 0.8})
    assert table.multiplier(ProofTier.STRONG_SIGNAL) == 0.8


def test_build_requirement_evidence_with_no_items_scores_zero():
    requirement = Requirement(id="r1", label="Testing", importance="must", weight=0.5)
    entry = build_requirement_evidence(requirement, [], TierTable())

    assert entry.items == ()
    assert entry.best_score == 0.0
    assert entry.best_verified_score == 0.0
    assert entry.best_tier is ProofTier.NONE


def test_build_requirement_evidence_reports_tier_of_best_item():
    requirement = Requirement(id="r1", label="Python")
    items = [
        make_item(ProofTier.VERIFIED_ARTIFACT, strength=0.2),
        make_item(ProofTier.STRONG_SIGNAL, strength=0.9),
    ]
    entry = build_requirement_evidence(requirement, items, TierTable())

    assert entry.best_tier is ProofTier.STRONG_SIGNAL
    assert entry.best_score == pytest.approx(0.63)
    assert entry.best_verified_score == pytest.approx(0.63)


def test_proof_tier_downgrade_stops_at_claim_only():
    assert ProofTier.VERIFIED_ARTIFACT.downgrade() is ProofTier.STRONG_SIGNAL
    assert ProofTier.WEAK_SIGNAL.downgrade() is ProofTier.CLAIM_ONLY
    assert ProofTier.CLAIM_ONLY.downgrade() is ProofTier.CLAIM_ONLY
