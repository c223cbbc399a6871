from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Importance = Literal["must", "should", "nice"]


class Requirement(BaseModel):
    """A single job need."""

    id: str
    label: str = Field(min_length=1)
    importance: Importance = "should"
    weight: float = Field(default=0.5, ge=0.0, le=1.0)
    synonyms: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class JobSpec(BaseModel):
    """Provider-neutral job specification."""

    job_id: str
    title: str = ""
    seniority: Literal["intern", "junior", "mid", "senior", "staff", "lead"] | None = None
    requirements: list[Requirement] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def _unique_requirement_ids(self) -> "JobSpec":
        seen: set[str] = set()
        for requirement in self.requirements:
            if requirement.id in seen:
                raise ValueError(f"Duplicate requirement id: {requirement.id!r}")
            seen.add(requirement.id)
        return self

    def must_haves(self) -> list[Requirement]:
        return [req for req in self.requirements if req.importance == "must"]
