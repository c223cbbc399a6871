"""Requirement matcher mapping job requirements to classified evidence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Mapping, Sequence

from rapidfuzz import fuzz

from ..errors import ConfigurationError
from ..schemas import EvidenceItem, JobSpec, Requirement, RequirementEvidence
from .text import normalize_text
from .tiers import TierTable, build_requirement_evidence, evidence_value

if TYPE_CHECKING:
    from .scorers import RequirementScorer


@dataclass
class MatcherConfig:
    """Configuration for requirement matching."""

    min_similarity: float = 90.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_similarity <= 100.0:
            raise ConfigurationError("Invalid matcher config", ["min_similarity must lie within [0, 100]"])


class RequirementMatcher:
    """Select the evidence items that support each requirement."""

    def __init__(
        self,
        *,
        config: MatcherConfig | None = None,
        aliases: Mapping[str, Sequence[str]] | None = None,
        tiers: TierTable | None = None,
    ) -> None:
        self._config = config or MatcherConfig()
        self._tiers = tiers or TierTable()
        self._alias_index = self._build_alias_index(aliases or {})

    def match(
        self,
        job: JobSpec,
        items: Sequence[EvidenceItem],
        *,
        strict: bool = False,
        top_k: int = 8,
        scorer: "RequirementScorer | None" = None,
    ) -> list[RequirementEvidence]:
        """Return exactly one RequirementEvidence per requirement, in job order."""

        matrix: list[RequirementEvidence] = []
        for requirement in job.requirements:
            selected = self.select(requirement, items, strict=strict, top_k=top_k)
            if scorer is not None:
                selected = scorer.assess(requirement, selected, strict=strict)
            matrix.append(build_requirement_evidence(requirement, selected, self._tiers))
        return matrix

    def select(
        self,
        requirement: Requirement,
        items: Sequence[EvidenceItem],
        *,
        strict: bool = False,
        top_k: int = 8,
    ) -> list[EvidenceItem]:
        keys = self.keys_for(requirement)
        candidates = [
            (position, item)
            for position, item in enumerate(items)
            if self._matches(item.skill, keys, strict=strict)
        ]
        candidates.sort(key=lambda pair: (-evidence_value(pair[1], self._tiers), pair[0]))
        return [item for _, item in candidates[: max(top_k, 1)]]

    def keys_for(self, requirement: Requirement) -> frozenset[str]:
        keys: set[str] = set()
        for term in (requirement.label, *requirement.synonyms):
            normalized = normalize_text(term)
            if not normalized:
                continue
            keys.add(normalized)
            keys.update(self._alias_index.get(normalized, ()))
        return frozenset(keys)

    def _matches(self, skill: str, keys: frozenset[str], *, strict: bool) -> bool:
        normalized = normalize_text(skill)
        if not normalized:
            return False
        # keys already carry every alias group member, so exact membership covers aliases
        if normalized in keys:
            return True
        if strict:
            return False
        return any(
            fuzz.token_sort_ratio(normalized, key) >= self._config.min_similarity for key in keys
        )

    @staticmethod
    def _build_alias_index(aliases: Mapping[str, Sequence[str]]) -> dict[str, frozenset[str]]:
        index: dict[str, set[str]] = {}
        for canonical, alternatives in aliases.items():
            group = {normalize_text(term) for term in (canonical, *alternatives) if normalize_text(term)}
            for term in group:
                index.setdefault(term, set()).update(group)
        return {term: frozenset(group) for term, group in index.items()}


def partition_evidence(
    items: Iterable[EvidenceItem],
    categories: Iterable[str],
) -> tuple[list[EvidenceItem], list[EvidenceItem]]:
    """Split items into (capability evidence, context evidence)."""

    context_keys = {normalize_text(category) for category in categories}
    capability: list[EvidenceItem] = []
    context: list[EvidenceItem] = []
    for item in items:
        if normalize_text(item.skill) in context_keys:
            context.append(item)
        else:
            capability.append(item)
    return capability, context
