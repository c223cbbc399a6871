"""Scoring engine wiring classifier, matcher, scorers, gate, context and composer."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import structlog

from ..errors import AugmentationError
from ..schemas import (
    CONTEXT_CATEGORIES,
    ContextWeights,
    EvidenceItem,
    ForgeConfig,
    JobSpec,
    ScoreResult,
)
from ..schemas.config import validate_model
from .capability import CapabilityScorer
from .classifier import EvidenceClassifier, EvidenceRecord, corroborate
from .context import ContextScorer
from .gate import AdmissionGate
from .matcher import RequirementMatcher, partition_evidence
from .ranking import RankComposer
from .scorers import RequirementScorer

ConfigInput = Optional[Union[ForgeConfig, Mapping[str, Any]]]
WeightsInput = Optional[Union[ContextWeights, Mapping[str, Any]]]


class ForgeEngine:
    """Score one candidate's evidence against one job.

    The engine holds no per-candidate state; the same instance can score any
    number of (candidate, job) pairs and returns identical results for
    identical inputs.
    """

    def __init__(
        self,
        *,
        classifier: EvidenceClassifier | None = None,
        matcher: RequirementMatcher | None = None,
        capability: CapabilityScorer | None = None,
        context: ContextScorer | None = None,
        composer: RankComposer | None = None,
    ) -> None:
        self._classifier = classifier or EvidenceClassifier()
        self._matcher = matcher or RequirementMatcher()
        self._capability = capability or CapabilityScorer()
        self._context = context or ContextScorer()
        self._composer = composer or RankComposer()
        self._logger = structlog.get_logger(__name__)

    def classify(self, records: Iterable[EvidenceRecord], config: ConfigInput = None) -> list[EvidenceItem]:
        forge_config = validate_model(ForgeConfig, _as_dict(config), name="forge config")
        items = self._classifier.classify_all(records, as_of=forge_config.as_of)
        if forge_config.corroboration_boost:
            items = corroborate(items)
        return items

    def score(
        self,
        job: JobSpec,
        items: Sequence[EvidenceItem],
        weights: WeightsInput = None,
        config: ConfigInput = None,
        *,
        candidate_id: str,
        scorer: RequirementScorer | None = None,
    ) -> ScoreResult:
        """Score ``items`` against ``job``.

        When ``scorer`` fails with AugmentationError the pair is rescored
        deterministically and the result carries ``augmentation_fallback``.
        """

        forge_config = validate_model(ForgeConfig, _as_dict(config), name="forge config")
        context_weights = validate_model(ContextWeights, _as_dict(weights), name="context weights")
        if scorer is None:
            return self._score(job, items, context_weights, forge_config, candidate_id, None)
        try:
            return self._score(job, items, context_weights, forge_config, candidate_id, scorer)
        except AugmentationError as exc:
            self._logger.warning(
                "augmentation.fallback",
                candidate_id=candidate_id,
                job_id=job.job_id,
                error=str(exc),
            )
        result = self._score(job, items, context_weights, forge_config, candidate_id, None)
        return result.model_copy(update={"augmentation_fallback": True})

    def _score(
        self,
        job: JobSpec,
        items: Sequence[EvidenceItem],
        context_weights: ContextWeights,
        forge_config: ForgeConfig,
        candidate_id: str,
        scorer: RequirementScorer | None,
    ) -> ScoreResult:
        gate = AdmissionGate(forge_config.capability_threshold)

        capability_items, context_items = partition_evidence(items, CONTEXT_CATEGORIES)
        matrix = self._matcher.match(
            job,
            capability_items,
            strict=forge_config.strict_evidence_mode,
            top_k=forge_config.top_k_chunks_per_requirement,
            scorer=scorer,
        )
        summary = self._capability.score(matrix)
        decision = gate.decide(summary.capability_score_verified, matrix)
        context_scores, context_score = self._context.score(context_items, context_weights)
        adjustment, forge_score = self._composer.compose(
            summary.capability_score_verified,
            context_score,
            capability_items,
            learning_velocity_boost=forge_config.learning_velocity_boost,
        )

        return ScoreResult(
            candidate_id=candidate_id,
            job_id=job.job_id,
            capability_score=summary.capability_score,
            capability_score_verified=summary.capability_score_verified,
            threshold=decision.threshold,
            pass_gate=decision.passed,
            gate_state=decision.state,
            missing_must_haves=tuple(decision.missing_must_haves),
            context_scores=context_scores,
            context_score=context_score,
            adjustment=adjustment,
            forge_score=forge_score,
            confidence=summary.confidence,
            evidence_matrix=tuple(matrix),
            scorer=scorer.method if scorer is not None else "deterministic",
        )

    @staticmethod
    def regate(result: ScoreResult, threshold: float) -> ScoreResult:
        """Re-apply the admission gate for a new threshold without rescoring."""

        decision = AdmissionGate(threshold).decide(result.capability_score_verified, result.evidence_matrix)
        return result.model_copy(
            update={
                "threshold": decision.threshold,
                "pass_gate": decision.passed,
                "gate_state": decision.state,
                "missing_must_haves": tuple(decision.missing_must_haves),
            }
        )


def _as_dict(value: Any) -> Any:
    if isinstance(value, Mapping) and not isinstance(value, dict):
        return dict(value)
    return value
