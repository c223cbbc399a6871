from __future__ import annotations

from pathlib import Path

import pytest

from forgerank.config import load_settings
from forgerank.container import create_container
from forgerank.errors import ConfigurationError
from forgerank.schemas import ProofTier
from forgerank.schemas.config import AppConfig, load_config


def test_create_container_with_overrides():
    container = create_container(
        settings={
            "tiers": {"STRONG_SIGNAL": 0.8},
            "aliases": {"kubernetes": ["k8s"]},
            "classifier": {"recency_curve": "logistic", "min_relevance": 0.3},
            "matcher": {"min_similarity": 85},
            "context": {"presence_weight": 0.5},
            "composer": {"adjustment_ratio": 0.02},
            "explanations": {"proven_threshold": 0.7},
        }
    )

    classifier = container.classifier()
    matcher = container.matcher()
    context = container.context_scorer()
    composer = container.composer()
    explainer = container.explainer()
    engine = container.engine()

    assert classifier._config.recency_curve == "logistic"
    assert classifier._config.min_relevance == 0.3
    assert matcher._config.min_similarity == 85
    assert matcher._tiers.multiplier(ProofTier.STRONG_SIGNAL) == 0.8
    assert "k8s" in matcher._alias_index["kubernetes"]
    assert context._config.presence_weight == 0.5
    assert composer._config.adjustment_ratio == 0.02
    assert explainer._config.proven_threshold == 0.7
    assert engine._matcher is matcher


def test_aliases_apply_without_matcher_section():
    container = create_container(settings={"aliases": {"postgresql": ["postgres"]}})
    assert "postgres" in container.matcher()._alias_index["postgresql"]


@pytest.mark.parametrize(
    "settings",
    [
        {"tiers": {"WEAK_SIGNAL": 0.95}},
        {"composer": {"adjustment_ratio": 0.5}},
        {"classifier": {"unknown_option": 1}},
        {"matcher": ["not", "a", "mapping"]},
        {"explanations": {"proven_threshold": "high"}},
        {"context": {"signals": {"teamwork": ["mentored", "paired"]}}},
        {"context": {"points": {"strong": "x"}}},
        {"context": {"caps": {"critical": 2.0}}},
        {"classifier": {"min_relevance": "x"}},
        {"tiers": {"STRONG_SIGNAL": "high"}},
    ],
)
def test_invalid_component_settings_raise(settings):
    with pytest.raises(ConfigurationError):
        create_container(settings=settings)


def test_load_config_validation():
    data = {
        "forge": {"capability_threshold": 0.5, "strict_evidence_mode": True},
        "context_weights": {"teamwork": 0.4},
        "matcher": {"min_similarity": 92},
    }
    app_config = load_config(data)
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings["forge"]["capability_threshold"] == 0.5
    assert settings["context_weights"]["teamwork"] == 0.4
    assert settings["matcher"] == {"min_similarity": 92}
    assert "tiers" not in settings


@pytest.mark.parametrize(
    "data",
    [
        {"forge": {"capability_threshold": -0.1}},
        {"context_weights": {"ownership": 1.2}},
        {"scoring": {}},
        ["not", "a", "mapping"],
    ],
)
def test_load_config_rejects_invalid_values(data):
    with pytest.raises(ConfigurationError):
        load_config(data)


def test_load_settings_reads_yaml(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "forge:\n  capability_threshold: 0.3\naliases:\n  javascript: [js]\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings["forge"]["capability_threshold"] == 0.3
    assert settings["aliases"] == {"javascript": ["js"]}


def test_load_settings_rejects_broken_yaml(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("forge: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_load_config_rejects_unparsable_as_of():
    with pytest.raises(ConfigurationError, match="as_of"):
        load_config({"forge": {"as_of": "not-a-date"}})

    settings = load_config({"forge": {"as_of": "2024-06"}}).to_settings()
    assert settings["forge"]["as_of"] == "2024-06"
