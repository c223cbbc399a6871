"""Context (soft-signal) scoring."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..errors import ConfigurationError
from ..schemas import CONTEXT_CATEGORIES, ContextSignal, ContextWeights, EvidenceItem
from .text import normalize_text
from .tiers import clamp01, round_score

SIGNAL_LEVELS: tuple[str, ...] = ("strong", "medium", "weak")


def _default_signals() -> dict[str, dict[str, list[str]]]:
    return {
        "teamwork": {
            "strong": ["collaborated", "cross-functional", "pair programming", "code review", "mentored", "team lead"],
            "medium": ["team", "worked with", "alongside", "together", "group"],
            "weak": ["we", "our", "helped"],
        },
        "communication": {
            "strong": ["documentation", "technical writing", "design doc", "rfc", "presented", "blog post", "published"],
            "medium": ["readme", "explained", "stakeholder", "communicated", "wrote"],
            "weak": ["meeting", "discussed", "shared"],
        },
        "adaptability": {
            "strong": ["migrated", "refactored", "learned new", "pivoted", "transformed", "modernized"],
            "medium": ["adapted", "multiple stacks", "various technologies", "different", "switched"],
            "weak": ["changed", "updated", "new"],
        },
        "ownership": {
            "strong": ["owned end-to-end", "led", "architected", "launched", "shipped to production", "drove"],
            "medium": ["responsible for", "maintained", "primary owner", "built"],
            "weak": ["worked on", "contributed", "involved"],
        },
    }


@dataclass
class ContextConfig:
    """Signal tables and point scheme for context scoring."""

    signals: dict[str, dict[str, list[str]]] = field(default_factory=_default_signals)
    points: dict[str, float] = field(default_factory=lambda: {"strong": 3.0, "medium": 1.5, "weak": 0.5})
    caps: dict[str, float] = field(default_factory=lambda: {"strong": 15.0, "medium": 7.5, "weak": 1.5})
    normalizer: float = 24.0
    presence_weight: float = 0.25
    saturation_count: int = 4

    def __post_init__(self) -> None:
        errors = _signal_errors(self.signals)
        for name in ("points", "caps"):
            errors.extend(_level_table_errors(name, getattr(self, name)))
        if not _is_number(self.presence_weight) or not 0.0 <= self.presence_weight <= 1.0:
            errors.append("presence_weight must lie within [0, 1]")
        if not _is_number(self.normalizer) or self.normalizer <= 0:
            errors.append("normalizer must be positive")
        if not isinstance(self.saturation_count, int) or self.saturation_count < 1:
            errors.append("saturation_count must be at least 1")
        if errors:
            raise ConfigurationError("Invalid context config", errors)


class ContextScorer:
    """Score teamwork, communication, adaptability and ownership evidence."""

    def __init__(self, *, config: ContextConfig | None = None) -> None:
        self._config = config or ContextConfig()
        self._patterns = {
            category: {
                level: [(phrase, _phrase_pattern(phrase)) for phrase in phrases]
                for level, phrases in levels.items()
            }
            for category, levels in self._config.signals.items()
        }

    def score(
        self,
        items: Iterable[EvidenceItem],
        weights: ContextWeights,
    ) -> tuple[dict[str, ContextSignal], float]:
        grouped: dict[str, list[EvidenceItem]] = {category: [] for category in CONTEXT_CATEGORIES}
        for item in items:
            category = normalize_text(item.skill)
            if category in grouped:
                grouped[category].append(item)

        weight_map = weights.as_dict()
        signals: dict[str, ContextSignal] = {}
        for category in CONTEXT_CATEGORIES:
            score, matched = self.score_category(category, grouped[category])
            weight = weight_map[category]
            signals[category] = ContextSignal(
                category=category,
                score=score,
                weight=weight,
                weighted=round_score(score * weight),
                evidence_count=len(grouped[category]),
                matched_signals=tuple(matched),
            )

        total_weight = sum(weight_map.values())
        if total_weight <= 0:
            return signals, 0.0
        aggregate = sum(signal.score * signal.weight for signal in signals.values()) / total_weight
        return signals, round_score(clamp01(aggregate))

    def score_category(self, category: str, items: Sequence[EvidenceItem]) -> tuple[float, list[str]]:
        if not items:
            return 0.0, []
        text = normalize_text(" ".join(item.snippet for item in items))
        keyword_points = 0.0
        matched: list[str] = []
        for level, patterns in self._patterns.get(category, {}).items():
            hits = [phrase for phrase, pattern in patterns if pattern.search(text)]
            matched.extend(hits)
            level_points = len(hits) * self._config.points.get(level, 0.0)
            keyword_points += min(level_points, self._config.caps.get(level, level_points))

        keywords = clamp01(keyword_points / self._config.normalizer)
        presence = min(1.0, len(items) / self._config.saturation_count)
        weight = self._config.presence_weight
        return round_score(clamp01((1.0 - weight) * keywords + weight * presence)), matched


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _signal_errors(signals: object) -> list[str]:
    if not isinstance(signals, dict):
        return ["signals must map context categories to signal levels"]
    errors: list[str] = []
    unknown = sorted(str(category) for category in set(signals) - set(CONTEXT_CATEGORIES))
    if unknown:
        errors.append(f"unknown context categories: {', '.join(unknown)}")
    for category, levels in signals.items():
        if not isinstance(levels, dict):
            errors.append(f"signals.{category} must map signal levels to phrase lists")
            continue
        for level, phrases in levels.items():
            if level not in SIGNAL_LEVELS:
                errors.append(f"signals.{category}: unknown signal level {level!r}")
            elif not isinstance(phrases, (list, tuple)) or not all(isinstance(p, str) for p in phrases):
                errors.append(f"signals.{category}.{level} must be a list of phrases")
    return errors


def _level_table_errors(name: str, table: object) -> list[str]:
    if not isinstance(table, dict):
        return [f"{name} must map signal levels to numbers"]
    errors: list[str] = []
    for level, value in table.items():
        if level not in SIGNAL_LEVELS:
            errors.append(f"{name}: unknown signal level {level!r}")
        elif not _is_number(value) or value < 0:
            errors.append(f"{name}.{level} must be a non-negative number")
    return errors


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(r"(?<![a-z0-9])" + re.escape(normalize_text(phrase)) + r"(?![a-z0-9])")
