"""Batch ranking pipeline assembly and execution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import pendulum
import structlog
from pydantic import ValidationError

from . import __version__
from .core import AugmentedScorer, ExplanationBuilder, ForgeEngine, pool_relative_threshold, rank
from .core.engine import ConfigInput, WeightsInput
from .core.scorers import AugmentationClient, RequirementScorer
from .errors import ConfigurationError
from .logging import bind_run
from .schemas import (
    BatchMetadata,
    BatchResult,
    CandidateEvidence,
    ContextWeights,
    ForgeConfig,
    JobSpec,
    RankedCandidate,
    ScoreResult,
)
from .schemas.config import validate_model


class CandidateLoadError(ValueError):
    """Raised when candidate loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[CandidateEvidence]):
        super().__init__("Candidate loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Candidate loading failed: {self.errors}"


class CandidateLoader:
    """Load candidate evidence bundles from JSON lines."""

    def load(self, path: Path) -> list[CandidateEvidence]:
        candidates: list[CandidateEvidence] = []
        errors: list[str] = []
        seen: set[str] = set()
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                try:
                    candidate = CandidateEvidence.model_validate(record)
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc.error_count()} validation errors ({_first_error(exc)})")
                    continue
                if candidate.candidate_id in seen:
                    errors.append(f"line {idx}: duplicate candidate_id '{candidate.candidate_id}'")
                    continue
                seen.add(candidate.candidate_id)
                candidates.append(candidate)
        if errors:
            raise CandidateLoadError(errors, candidates)
        return candidates


class JobLoader:
    """Load job specification documents."""

    def load(self, path: Path) -> JobSpec:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigurationError("Invalid job specification", [f"invalid JSON ({exc})"]) from exc
        return validate_model(JobSpec, data, name="job specification")


class OutputWriter:
    """Persist ranking outcomes."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


class RankingPipeline:
    """End-to-end ranking orchestrator."""

    def __init__(
        self,
        *,
        engine: ForgeEngine,
        explainer: ExplanationBuilder,
        candidate_loader: CandidateLoader | None = None,
        job_loader: JobLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._engine = engine
        self._explainer = explainer
        self._candidates = candidate_loader or CandidateLoader()
        self._jobs = job_loader or JobLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def rank(
        self,
        job: JobSpec,
        candidates: Sequence[CandidateEvidence],
        weights: WeightsInput = None,
        config: ConfigInput = None,
        *,
        augmented_scorer: RequirementScorer | None = None,
        audit_logger: AuditLogger | None = None,
        errors: Sequence[str] = (),
    ) -> BatchResult:
        """Score every candidate, apply the admission gate and order the pool.

        Candidates whose augmented scoring failed were rescored
        deterministically by the engine and are listed in
        ``metadata.augmentation_fallbacks``.
        """

        forge_config = validate_model(ForgeConfig, config, name="forge config")
        context_weights = validate_model(ContextWeights, weights, name="context weights")

        results: list[ScoreResult] = []
        for candidate in candidates:
            items = self._engine.classify(candidate.evidence, forge_config)
            results.append(
                self._engine.score(
                    job,
                    items,
                    context_weights,
                    forge_config,
                    candidate_id=candidate.candidate_id,
                    scorer=augmented_scorer,
                )
            )
        fallbacks = [result.candidate_id for result in results if result.augmentation_fallback]

        threshold, threshold_source = forge_config.capability_threshold, "fixed"
        if forge_config.pool_relative_tau:
            threshold, threshold_source = pool_relative_threshold(
                [result.capability_score_verified for result in results],
                forge_config.capability_threshold,
            )
            if threshold_source == "pool_relative":
                results = [self._engine.regate(result, threshold) for result in results]
        self._logger.info(
            "ranking.threshold",
            job_id=job.job_id,
            threshold=threshold,
            threshold_source=threshold_source,
            candidate_count=len(results),
        )

        names = {candidate.candidate_id: candidate.name for candidate in candidates}
        ranked: list[RankedCandidate] = []
        for position, (_, result) in enumerate(rank(results), start=1):
            entry = RankedCandidate(
                rank=position,
                candidate_id=result.candidate_id,
                name=names.get(result.candidate_id),
                result=result,
                explanations=self._explainer.build(result),
            )
            ranked.append(entry)

            if audit_logger:
                audit_logger.append(
                    {
                        "candidate_id": result.candidate_id,
                        "job_id": job.job_id,
                        "rank": position,
                        "forge_score": result.forge_score,
                        "capability_score_verified": result.capability_score_verified,
                        "pass_gate": result.pass_gate,
                        "missing_must_haves": list(result.missing_must_haves),
                        "scorer": result.scorer,
                    }
                )

            self._logger.info(
                "ranking.result",
                candidate_id=result.candidate_id,
                job_id=job.job_id,
                rank=position,
                forge_score=result.forge_score,
                capability_score_verified=result.capability_score_verified,
                pass_gate=result.pass_gate,
                missing_must_haves=list(result.missing_must_haves),
            )

        metadata = BatchMetadata(
            job_id=job.job_id,
            candidate_count=len(results),
            threshold=threshold,
            threshold_source=threshold_source,
            used_augmentation=augmented_scorer is not None and not fallbacks,
            augmentation_fallbacks=fallbacks,
            errors=list(errors),
        )
        return BatchResult(metadata=metadata, results=ranked)

    def run(
        self,
        *,
        candidates_path: Path,
        job_path: Path,
        output_path: Path,
        settings: dict[str, Any] | None = None,
        as_of: str | None = None,
        audit_logger: AuditLogger | None = None,
        augmentation_client: AugmentationClient | None = None,
    ) -> BatchResult:
        settings = settings or {}
        forge_settings = dict(settings.get("forge") or {})
        if as_of:
            forge_settings["as_of"] = as_of
        forge_config = validate_model(ForgeConfig, forge_settings, name="forge config")
        context_weights = validate_model(ContextWeights, settings.get("context_weights"), name="context weights")

        job = self._jobs.load(job_path)
        load_errors: list[str] = []
        try:
            candidates = self._candidates.load(candidates_path)
        except CandidateLoadError as exc:
            candidates = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("candidates.partial_load", errors=exc.errors)

        augmented_scorer = AugmentedScorer(augmentation_client) if augmentation_client is not None else None
        with bind_run(job_id=job.job_id, run_as_of=forge_config.as_of):
            batch = self.rank(
                job,
                candidates,
                context_weights,
                forge_config,
                augmented_scorer=augmented_scorer,
                audit_logger=audit_logger,
                errors=load_errors,
            )
        batch = batch.model_copy(
            update={
                "metadata": batch.metadata.model_copy(
                    update={
                        "timestamp": pendulum.now().to_iso8601_string(),
                        "app_version": __version__,
                    }
                )
            }
        )

        self._writer.write(output_path, batch.to_payload())
        return batch


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"]) or "record"
    return f"{location}: {error['msg']}"
