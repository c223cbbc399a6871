"""Rank composition and the candidate ordering cascade."""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass, field
from typing import Iterable, Literal, Sequence

from ..errors import ConfigurationError
from ..schemas import EvidenceItem, EvidenceSource, ScoreResult
from .text import normalize_text
from .tiers import clamp01, round_score

MAX_ADJUSTMENT_RATIO = 0.05

ThresholdSource = Literal["fixed", "pool_relative"]


def _learning_signals() -> list[str]:
    return [
        "forked from",
        "based on",
        "inspired by",
        "learning",
        "tutorial",
        "course",
        "bootcamp",
        "self-taught",
        "practicing",
        "experimenting",
    ]


def _modification_signals() -> list[str]:
    return [
        "modified",
        "customized",
        "extended",
        "added",
        "improved",
        "refactored",
        "updated",
        "enhanced",
        "built on top",
    ]


@dataclass
class ComposerConfig:
    """Configuration for the bounded forge-score adjustment."""

    adjustment_ratio: float = MAX_ADJUSTMENT_RATIO
    learning_signals: list[str] = field(default_factory=_learning_signals)
    modification_signals: list[str] = field(default_factory=_modification_signals)

    def __post_init__(self) -> None:
        if not 0.0 <= self.adjustment_ratio <= MAX_ADJUSTMENT_RATIO:
            raise ConfigurationError(
                "Invalid composer config",
                [f"adjustment_ratio must lie within [0, {MAX_ADJUSTMENT_RATIO}]"],
            )


class RankComposer:
    """Combine capability and context into the forge score."""

    def __init__(self, *, config: ComposerConfig | None = None) -> None:
        self._config = config or ComposerConfig()

    def compose(
        self,
        capability_score_verified: float,
        context_score: float,
        items: Sequence[EvidenceItem] = (),
        *,
        learning_velocity_boost: bool = True,
    ) -> tuple[float, float]:
        """Return ``(adjustment, forge_score)``.

        The adjustment never exceeds ``adjustment_ratio`` of the product, so it
        can only separate near-ties.
        """

        product = clamp01(capability_score_verified) * clamp01(context_score)
        velocity = self.learning_velocity(items) if learning_velocity_boost else 0.0
        adjustment = product * self._config.adjustment_ratio * velocity
        return round_score(adjustment), round_score(product + adjustment)

    def learning_velocity(self, items: Iterable[EvidenceItem]) -> float:
        """0..1 signal for repositories that were both studied and modified."""

        text = normalize_text(
            " ".join(item.snippet for item in items if item.source is EvidenceSource.CODE_REPOSITORY)
        )
        if not text:
            return 0.0
        learning = sum(1 for signal in self._config.learning_signals if signal in text)
        modification = sum(1 for signal in self._config.modification_signals if signal in text)
        if learning == 0 or modification == 0:
            return 0.0
        return clamp01((learning + 2 * modification) / 10.0)


def rank_key(result: ScoreResult) -> tuple[bool, float, float, float]:
    """Sort key implementing the ordering cascade (ascending sort)."""
    return (
        not result.pass_gate,
        -result.forge_score,
        -result.capability_score_verified,
        -result.confidence,
    )


def compare(left: ScoreResult, right: ScoreResult) -> int:
    """Three-way comparison: negative when ``left`` ranks ahead of ``right``."""
    left_key, right_key = rank_key(left), rank_key(right)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def rank(results: Sequence[ScoreResult]) -> list[tuple[int, ScoreResult]]:
    """Order results by the cascade; full ties keep their input order.

    Returns ``(input_index, result)`` pairs in rank order.
    """

    indexed = list(enumerate(results))
    indexed.sort(key=functools.cmp_to_key(lambda a, b: compare(a[1], b[1]) or (a[0] - b[0])))
    return indexed


def pool_relative_threshold(
    verified_scores: Sequence[float],
    default: float,
    *,
    percentile: float = 0.4,
    floor: float = 0.25,
    ceiling: float = 0.60,
    min_pool: int = 3,
) -> tuple[float, ThresholdSource]:
    """Derive the gate threshold from the candidate pool.

    With fewer than ``min_pool`` candidates the configured threshold is kept.
    """

    if len(verified_scores) < min_pool:
        return default, "fixed"
    ordered = sorted(verified_scores)
    index = min(int(math.floor(len(ordered) * percentile)), len(ordered) - 1)
    return round_score(max(floor, min(ceiling, ordered[index]))), "pool_relative"
