"""Candidate evidence bundles read from the batch input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CandidateEvidence(BaseModel):
    """One candidate and the raw or pre-classified evidence gathered for them."""

    candidate_id: str = Field(min_length=1)
    name: str | None = None
    evidence: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
