from __future__ import annotations

import pytest
from pydantic import ValidationError

from forgerank.schemas import (
    CandidateEvidence,
    EvidenceItem,
    EvidenceSource,
    ForgeConfig,
    JobSpec,
    ProofTier,
    RawEvidence,
)


def test_evidence_item_bounds_sub_scores():
    with pytest.raises(ValidationError):
        EvidenceItem(
            source=EvidenceSource.RESUME,
            skill="Python",
            proof_tier=ProofTier.CLAIM_ONLY,
            strength=1.2,
            relevance=0.5,
            recency=0.5,
        )


def test_evidence_item_is_immutable():
    item = EvidenceItem(
        source="portfolio",
        skill="Figma",
        proof_tier="STRONG_SIGNAL",
        strength=0.5,
        relevance=0.5,
        recency=0.5,
    )
    assert item.source is EvidenceSource.PORTFOLIO
    with pytest.raises(ValidationError):
        item.strength = 0.9


def test_raw_evidence_ignores_unknown_fields_but_requires_skill():
    raw = RawEvidence.model_validate({"source": "writing", "skill": "Go", "stars": 120})
    assert raw.text == ""
    with pytest.raises(ValidationError):
        RawEvidence.model_validate({"source": "writing", "skill": ""})


def test_job_spec_rejects_duplicate_requirement_ids():
    with pytest.raises(ValidationError) as exc:
        JobSpec.model_validate(
            {
                "job_id": "JD-1",
                "requirements": [
                    {"id": "r1", "label": "Python"},
                    {"id": "r1", "label": "Go"},
                ],
            }
        )
    assert "Duplicate requirement id" in str(exc.value)


def test_job_spec_defaults_and_must_haves():
    job = JobSpec.model_validate(
        {
            "job_id": "JD-1",
            "title": "Platform Engineer",
            "seniority": "senior",
            "requirements": [
                {"id": "r1", "label": "Kubernetes", "importance": "must", "weight": 0.7},
                {"id": "r2", "label": "Go"},
            ],
        }
    )
    assert [req.id for req in job.must_haves()] == ["r1"]
    assert job.requirements[1].importance == "should"
    assert job.requirements[1].weight == 0.5


def test_requirement_weight_is_bounded():
    with pytest.raises(ValidationError):
        JobSpec.model_validate({"job_id": "JD", "requirements": [{"id": "r", "label": "X", "weight": 2}]})


def test_forge_config_defaults():
    config = ForgeConfig()
    assert config.capability_threshold == 0.4
    assert config.top_k_chunks_per_requirement == 8
    assert config.strict_evidence_mode is False
    assert config.learning_velocity_boost is True


def test_candidate_evidence_requires_identifier():
    with pytest.raises(ValidationError):
        CandidateEvidence.model_validate({"candidate_id": "", "evidence": []})
