"""Admission gate applied before competitive ranking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..errors import ConfigurationError
from ..schemas import RequirementEvidence
from ..schemas.result import GateState


@dataclass(slots=True)
class GateDecision:
    """Outcome of the admission gate."""

    passed: bool
    state: GateState
    threshold: float
    below_threshold: bool
    missing_must_haves: list[str] = field(default_factory=list)


class AdmissionGate:
    """Pass/fail gate on verified capability and must-have coverage.

    A candidate passes when the verified capability score reaches the
    threshold and every ``must`` requirement has a non-zero verified score.
    Must-have gaps are reported whether or not the threshold was met.
    """

    def __init__(self, threshold: float) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(
                "Invalid capability threshold",
                [f"capability_threshold must lie within [0, 1], got {threshold}"],
            )
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    def decide(self, capability_score_verified: float, matrix: Sequence[RequirementEvidence]) -> GateDecision:
        missing = [
            entry.label
            for entry in matrix
            if entry.importance == "must" and not entry.has_verified_proof
        ]
        below_threshold = capability_score_verified < self._threshold
        passed = not below_threshold and not missing
        return GateDecision(
            passed=passed,
            state="passed" if passed else "filtered",
            threshold=self._threshold,
            below_threshold=below_threshold,
            missing_must_haves=missing,
        )
