"""Per-requirement scorers: the deterministic default and the augmented path."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

import structlog
from pydantic import ValidationError

from ..errors import AugmentationError
from ..schemas import EvidenceItem, ProofTier, Requirement
from .text import key_terms, normalize_text

UNGROUNDED_MAX_STRENGTH = 0.5
UNGROUNDED_MAX_RELEVANCE = 0.6


class RequirementScorer(Protocol):
    """Assess the evidence selected for one requirement."""

    method: str

    def assess(
        self,
        requirement: Requirement,
        items: Sequence[EvidenceItem],
        *,
        strict: bool = False,
    ) -> list[EvidenceItem]:
        ...


class AugmentationClient(Protocol):
    def assess(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        ...


class DeterministicScorer:
    """Pass matched items through unchanged."""

    method = "deterministic"

    def assess(
        self,
        requirement: Requirement,
        items: Sequence[EvidenceItem],
        *,
        strict: bool = False,
    ) -> list[EvidenceItem]:
        return list(items)


class AugmentedScorer:
    """Ask an external assessor to re-grade evidence, then verify its answer.

    Every snippet the assessor returns must be traceable to the evidence it
    was given. Untraceable snippets lose a tier (or drop to ``NONE`` in
    strict mode). A failed call is retried ``retries`` times before
    AugmentationError is raised.
    """

    method = "augmented"

    def __init__(self, client: AugmentationClient, *, retries: int = 1) -> None:
        self._client = client
        self._retries = max(retries, 0)
        self._logger = structlog.get_logger(__name__)

    def assess(
        self,
        requirement: Requirement,
        items: Sequence[EvidenceItem],
        *,
        strict: bool = False,
    ) -> list[EvidenceItem]:
        if not items:
            return []
        payload = build_requirement_payload(requirement, items, strict=strict)
        failures: list[str] = []
        for attempt in range(self._retries + 1):
            try:
                returned = self._parse(self._client.assess(payload))
            except Exception as exc:  # noqa: BLE001
                failures.append(f"attempt {attempt + 1}: {exc}")
                self._logger.warning(
                    "augmentation.attempt_failed",
                    requirement_id=requirement.id,
                    attempt=attempt + 1,
                    error=str(exc),
                )
                continue
            return [verify_snippet(item, items, strict=strict) for item in returned]
        raise AugmentationError(
            f"Augmented scoring failed for requirement {requirement.id!r}: {'; '.join(failures)}"
        )

    @staticmethod
    def _parse(response: dict[str, Any] | None) -> list[EvidenceItem]:
        if response is None:
            raise AugmentationError("assessor returned no response")
        if not isinstance(response, dict) or not isinstance(response.get("items"), list):
            raise AugmentationError("assessor response must contain an 'items' list")
        try:
            return [EvidenceItem.model_validate(item) for item in response["items"]]
        except ValidationError as exc:
            raise AugmentationError(f"assessor returned invalid evidence: {exc.error_count()} errors") from exc


def build_requirement_payload(
    requirement: Requirement,
    items: Sequence[EvidenceItem],
    *,
    strict: bool = False,
) -> dict[str, Any]:
    """Construct the payload sent to an external assessor for one requirement."""

    return {
        "requirement": requirement.model_dump(mode="json"),
        "strict_evidence_mode": strict,
        "items": [item.model_dump(mode="json") for item in items],
    }


def is_grounded(snippet: str, supplied: Sequence[EvidenceItem]) -> bool:
    """True when ``snippet`` can be traced back to the supplied evidence.

    Either the whole snippet appears verbatim (normalised, at least eight
    characters) or at least half of its longer terms do.
    """

    corpus = normalize_text("\n".join(item.snippet for item in supplied))
    text = normalize_text(snippet)
    if not corpus or not text:
        return False
    if len(text) >= 8 and text in corpus:
        return True
    terms = key_terms(text, min_length=5)
    if not terms:
        return False
    return sum(1 for term in terms if term in corpus) / len(terms) >= 0.5


def verify_snippet(item: EvidenceItem, supplied: Sequence[EvidenceItem], *, strict: bool = False) -> EvidenceItem:
    if is_grounded(item.snippet, supplied):
        return item
    if strict:
        update: dict[str, Any] = {
            "proof_tier": ProofTier.NONE,
            "strength": 0.0,
            "relevance": 0.0,
            "recency": 0.0,
        }
        note = "Snippet not found in supplied evidence; strict mode set tier to NONE"
    else:
        update = {
            "proof_tier": item.proof_tier.downgrade(),
            "strength": min(item.strength, UNGROUNDED_MAX_STRENGTH),
            "relevance": min(item.relevance, UNGROUNDED_MAX_RELEVANCE),
        }
        note = "Snippet not found in supplied evidence; downgraded"
    update["notes"] = f"{item.notes} | {note}" if item.notes else note
    return item.model_copy(update=update)
