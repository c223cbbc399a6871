"""Dependency injection container for the ranking engine."""

from __future__ import annotations

from typing import Any, TypeVar

from dependency_injector import containers, providers

from .core import (
    CapabilityScorer,
    ClassifierConfig,
    ComposerConfig,
    ContextConfig,
    ContextScorer,
    EvidenceClassifier,
    ExplanationBuilder,
    ExplanationConfig,
    ForgeEngine,
    MatcherConfig,
    RankComposer,
    RequirementMatcher,
    TierTable,
)
from .errors import ConfigurationError
from .pipeline import RankingPipeline

ConfigT = TypeVar("ConfigT")


class ForgeContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    tier_table = providers.Singleton(TierTable)
    aliases = providers.Object({})

    classifier = providers.Singleton(EvidenceClassifier)
    matcher = providers.Singleton(RequirementMatcher, aliases=aliases, tiers=tier_table)
    capability = providers.Singleton(CapabilityScorer)
    context_scorer = providers.Singleton(ContextScorer)
    composer = providers.Singleton(RankComposer)
    explainer = providers.Singleton(ExplanationBuilder)

    engine = providers.Singleton(
        ForgeEngine,
        classifier=classifier,
        matcher=matcher,
        capability=capability,
        context=context_scorer,
        composer=composer,
    )

    pipeline = providers.Factory(
        RankingPipeline,
        engine=engine,
        explainer=explainer,
    )


def create_container(*, settings: dict[str, Any] | None = None) -> ForgeContainer:
    """Instantiate container with optional overrides.

    ``settings`` uses the YAML layout: ``tiers``, ``aliases``, ``classifier``,
    ``matcher``, ``context``, ``composer`` and ``explanations`` sections
    replace the corresponding component. Config dataclasses raise
    ConfigurationError on invalid values, so a bad file fails here rather
    than during scoring.
    """

    container = ForgeContainer()

    if not settings:
        return container

    if settings.get("tiers"):
        container.tier_table.override(providers.Object(TierTable.from_settings(settings["tiers"])))

    if settings.get("aliases"):
        container.aliases.override(providers.Object(dict(settings["aliases"])))

    if "classifier" in settings:
        classifier_config = _build_config(ClassifierConfig, settings["classifier"], "classifier")
        container.classifier.override(providers.Singleton(EvidenceClassifier, config=classifier_config))

    if "matcher" in settings:
        matcher_config = _build_config(MatcherConfig, settings["matcher"], "matcher")
        container.matcher.override(
            providers.Singleton(
                RequirementMatcher,
                config=matcher_config,
                aliases=container.aliases,
                tiers=container.tier_table,
            )
        )

    if "context" in settings:
        context_config = _build_config(ContextConfig, settings["context"], "context")
        container.context_scorer.override(providers.Singleton(ContextScorer, config=context_config))

    if "composer" in settings:
        composer_config = _build_config(ComposerConfig, settings["composer"], "composer")
        container.composer.override(providers.Singleton(RankComposer, config=composer_config))

    if "explanations" in settings:
        explanation_config = _build_config(ExplanationConfig, settings["explanations"], "explanations")
        container.explainer.override(providers.Singleton(ExplanationBuilder, config=explanation_config))

    return container


def _build_config(config_cls: type[ConfigT], section: Any, name: str) -> ConfigT:
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid {name} config", [f"{name} must be a mapping"])
    try:
        return config_cls(**section)
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {name} config", [str(exc)]) from exc
