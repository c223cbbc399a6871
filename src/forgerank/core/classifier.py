"""Evidence classification into proof tiers."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Protocol, Union

import pendulum
import structlog
from pydantic import ValidationError
from rapidfuzz import fuzz

from ..dates import parse_date
from ..errors import ConfigurationError, MalformedEvidenceError
from ..schemas import EvidenceItem, EvidenceSource, Ownership, ProofTier, RawEvidence
from .text import key_terms, normalize_text
from .tiers import clamp01, round_score

_URL_PATTERN = re.compile(r"https?://[^\s)>\]\"']+")
_QUANTIFIED_PATTERN = re.compile(r"\d")

_SELF_STATED_SOURCES = frozenset({EvidenceSource.RESUME, EvidenceSource.OTHER})

EvidenceRecord = Union[EvidenceItem, RawEvidence, Mapping[str, Any]]


class RecencyCurve(Protocol):
    """Maps the age of evidence in days to a 0..1 recency value."""

    def __call__(self, age_days: float) -> float:
        """Return recency; must never increase as ``age_days`` grows."""


@dataclass(frozen=True)
class LinearDecay:
    """Full credit inside the fresh window, then linear decay to a floor."""

    fresh_days: float = 180.0
    stale_days: float = 1095.0
    floor: float = 0.1

    def __call__(self, age_days: float) -> float:
        if age_days <= self.fresh_days:
            return 1.0
        if age_days >= self.stale_days:
            return self.floor
        span = self.stale_days - self.fresh_days
        progress = (age_days - self.fresh_days) / span
        return 1.0 - progress * (1.0 - self.floor)


@dataclass(frozen=True)
class LogisticDecay:
    """Logistic decay: ~0.95 when new, 0.5 at the midpoint, ~0.05 at twice it."""

    midpoint_days: float = 180.0
    scale_days: float = 60.0

    def __call__(self, age_days: float) -> float:
        exponent = (max(age_days, 0.0) - self.midpoint_days) / self.scale_days
        # guard math.exp overflow for very old evidence
        if exponent > 700:
            return 0.0
        return 1.0 / (1.0 + math.exp(exponent))


@dataclass
class ClassifierConfig:
    """Configuration for evidence classification."""

    artifact_sources: tuple[str, ...] = ("code-repository", "portfolio")
    recency_curve: str = "linear"
    fresh_days: float = 180.0
    stale_days: float = 1095.0
    recency_floor: float = 0.1
    logistic_midpoint_days: float = 180.0
    logistic_scale_days: float = 60.0
    unknown_recency: float = 0.5
    min_relevance: float = 0.2
    snippet_chars: int = 280

    def __post_init__(self) -> None:
        errors: list[str] = []
        if self.recency_curve not in ("linear", "logistic"):
            errors.append(f"unknown recency_curve {self.recency_curve!r}")
        if self.stale_days <= self.fresh_days:
            errors.append("stale_days must be greater than fresh_days")
        for name in ("recency_floor", "unknown_recency", "min_relevance"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"{name} must lie within [0, 1]")
        try:
            self.artifact_sources = tuple(EvidenceSource(source).value for source in self.artifact_sources)
        except ValueError as exc:
            errors.append(str(exc))
        if errors:
            raise ConfigurationError("Invalid classifier config", errors)

    def build_curve(self) -> RecencyCurve:
        if self.recency_curve == "logistic":
            return LogisticDecay(self.logistic_midpoint_days, self.logistic_scale_days)
        return LinearDecay(self.fresh_days, self.stale_days, self.recency_floor)


class EvidenceClassifier:
    """Assign proof tiers and sub-scores to raw evidence records."""

    def __init__(
        self,
        *,
        config: ClassifierConfig | None = None,
        recency_curve: RecencyCurve | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._config = config or ClassifierConfig()
        self._curve = recency_curve or self._config.build_curve()
        self._now_provider = now_provider or pendulum.now
        self._artifact_sources = frozenset(EvidenceSource(s) for s in self._config.artifact_sources)
        self._logger = structlog.get_logger(__name__)

    def classify_all(
        self,
        records: Iterable[EvidenceRecord],
        *,
        as_of: str | pendulum.DateTime | None = None,
    ) -> list[EvidenceItem]:
        reference = self._resolve_as_of(as_of)
        return [self._classify(record, reference) for record in records]

    def classify(
        self,
        record: EvidenceRecord,
        *,
        as_of: str | pendulum.DateTime | None = None,
    ) -> EvidenceItem:
        return self._classify(record, self._resolve_as_of(as_of))

    def _classify(self, record: EvidenceRecord, as_of: pendulum.DateTime) -> EvidenceItem:
        if isinstance(record, EvidenceItem):
            return record
        try:
            if isinstance(record, Mapping) and "proof_tier" in record:
                return self._validate_classified(record)
            raw = self._parse(record)
        except MalformedEvidenceError as exc:
            self._logger.warning("evidence.malformed", error=str(exc))
            return self._fallback(record, str(exc))

        url = raw.url or self._find_url(raw.text)
        return EvidenceItem(
            source=raw.source,
            skill=raw.skill.strip(),
            snippet=self._snippet(raw.text),
            url=url,
            proof_tier=self.assign_tier(raw, url=url),
            strength=self._strength(raw, url),
            relevance=self._relevance(raw),
            recency=self._recency(raw, as_of),
        )

    def assign_tier(self, raw: RawEvidence, *, url: str | None = None) -> ProofTier:
        """Apply the fixed decision order; the first matching rule wins."""

        url = url if url is not None else raw.url
        owned = raw.ownership is Ownership.OWNED
        third_party = raw.ownership is Ownership.THIRD_PARTY
        live_link = url is not None and raw.link_reachable is not False
        inspectable = live_link or (
            raw.source is EvidenceSource.CODE_REPOSITORY and raw.link_reachable is not False
        )

        if owned and raw.source in self._artifact_sources and inspectable:
            return ProofTier.VERIFIED_ARTIFACT
        if not third_party and (live_link or owned):
            return ProofTier.STRONG_SIGNAL
        if third_party or raw.ownership is Ownership.CONTRIBUTOR or raw.source not in _SELF_STATED_SOURCES:
            return ProofTier.WEAK_SIGNAL
        return ProofTier.CLAIM_ONLY

    @staticmethod
    def _parse(record: RawEvidence | Mapping[str, Any]) -> RawEvidence:
        if isinstance(record, RawEvidence):
            return record
        if not isinstance(record, Mapping):
            raise MalformedEvidenceError(f"Evidence must be a mapping, got {type(record).__name__}")
        try:
            return RawEvidence.model_validate(dict(record))
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise MalformedEvidenceError(f"Invalid evidence fields: {fields}") from exc

    @staticmethod
    def _validate_classified(record: Mapping[str, Any]) -> EvidenceItem:
        try:
            return EvidenceItem.model_validate(dict(record))
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise MalformedEvidenceError(f"Invalid classified evidence fields: {fields}") from exc

    def _fallback(self, record: Any, reason: str) -> EvidenceItem:
        data = record if isinstance(record, Mapping) else {}
        try:
            source = EvidenceSource(data.get("source"))
        except ValueError:
            source = EvidenceSource.OTHER
        skill = data.get("skill")
        text = data.get("text", data.get("snippet"))
        return EvidenceItem(
            source=source,
            skill=skill.strip() if isinstance(skill, str) else "",
            snippet=self._snippet(text) if isinstance(text, str) else "",
            proof_tier=ProofTier.CLAIM_ONLY,
            strength=0.0,
            relevance=0.0,
            recency=0.0,
            notes=f"Malformed evidence: {reason}",
        )

    def _snippet(self, text: str) -> str:
        text = " ".join(text.split())
        limit = self._config.snippet_chars
        if len(text) <= limit:
            return text
        return text[: limit - 3].rstrip() + "..."

    @staticmethod
    def _find_url(text: str) -> str | None:
        match = _URL_PATTERN.search(text)
        return match.group(0).rstrip(".,;") if match else None

    @staticmethod
    def _strength(raw: RawEvidence, url: str | None) -> float:
        if raw.strength is not None:
            return round_score(clamp01(raw.strength))
        text = raw.text.strip()
        score = 0.35
        if url:
            score += 0.15
        if _QUANTIFIED_PATTERN.search(text):
            score += 0.15
        score += 0.25 * min(len(text.split()) / 40.0, 1.0)
        if raw.ownership in (Ownership.OWNED, Ownership.CONTRIBUTOR):
            score += 0.1
        return round_score(clamp01(score))

    def _relevance(self, raw: RawEvidence) -> float:
        if raw.relevance is not None:
            return round_score(clamp01(raw.relevance))
        skill = normalize_text(raw.skill)
        text = normalize_text(raw.text)
        if not text:
            return self._config.min_relevance
        if skill in text:
            return 1.0
        ratio = fuzz.partial_ratio(skill, text) / 100.0
        return round_score(max(self._config.min_relevance, ratio * 0.8))

    def _recency(self, raw: RawEvidence, as_of: pendulum.DateTime) -> float:
        if raw.recency is not None:
            return round_score(clamp01(raw.recency))
        activity = parse_date(raw.last_activity)
        if activity is None:
            return self._config.unknown_recency
        age_days = 0 if activity >= as_of else as_of.diff(activity).in_days()
        return round_score(clamp01(self._curve(age_days)))

    def _resolve_as_of(self, as_of: str | pendulum.DateTime | None) -> pendulum.DateTime:
        if as_of is None:
            return self._now_provider()
        if isinstance(as_of, pendulum.DateTime):
            return as_of
        reference = parse_date(str(as_of))
        if reference is None:
            raise ConfigurationError("Invalid as_of date", [f"cannot parse as_of {as_of!r}"])
        return reference


def corroborate(items: Iterable[EvidenceItem]) -> list[EvidenceItem]:
    """Upgrade claim-level items whose wording reappears in inspectable artifacts.

    Terms from a CLAIM_ONLY or WEAK_SIGNAL snippet are looked up in the
    snippets of the candidate's other code-repository and portfolio items.
    Three repository hits or two portfolio hits count as corroboration.
    """

    pool = list(items)
    upgraded: list[EvidenceItem] = []
    for index, item in enumerate(pool):
        if item.proof_tier not in (ProofTier.CLAIM_ONLY, ProofTier.WEAK_SIGNAL):
            upgraded.append(item)
            continue
        others = [other for position, other in enumerate(pool) if position != index]
        repository_text = normalize_text(
            " ".join(o.snippet for o in others if o.source is EvidenceSource.CODE_REPOSITORY)
        )
        portfolio_text = normalize_text(
            " ".join(o.snippet for o in others if o.source is EvidenceSource.PORTFOLIO)
        )
        terms = key_terms(item.snippet, limit=10)
        corroborated_by: list[EvidenceSource] = []
        if repository_text and sum(1 for t in terms if t in repository_text) >= 3:
            corroborated_by.append(EvidenceSource.CODE_REPOSITORY)
        if portfolio_text and sum(1 for t in terms if t in portfolio_text) >= 2:
            corroborated_by.append(EvidenceSource.PORTFOLIO)
        if not corroborated_by:
            upgraded.append(item)
            continue

        by_repository = EvidenceSource.CODE_REPOSITORY in corroborated_by
        tier = item.proof_tier
        if tier is ProofTier.CLAIM_ONLY:
            tier = ProofTier.STRONG_SIGNAL if by_repository else ProofTier.WEAK_SIGNAL
        elif by_repository:
            tier = ProofTier.STRONG_SIGNAL
        note = "Corroborated by: " + ", ".join(source.value for source in corroborated_by)
        upgraded.append(
            item.model_copy(
                update={
                    "proof_tier": tier,
                    "corroborated_by": tuple(corroborated_by),
                    "notes": f"{item.notes} | {note}" if item.notes else note,
                }
            )
        )
    return upgraded
