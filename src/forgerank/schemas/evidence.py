"""Evidence records exchanged between ingestion and the scoring core."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EvidenceSource(str, Enum):
    """Where a piece of evidence came from."""

    CODE_REPOSITORY = "code-repository"
    RESUME = "resume"
    PORTFOLIO = "portfolio"
    WRITING = "writing"
    PROFESSIONAL_PROFILE = "professional-profile"
    OTHER = "other"


class Ownership(str, Enum):
    """Ownership signal attached to raw evidence by ingestion."""

    OWNED = "owned"
    CONTRIBUTOR = "contributor"
    THIRD_PARTY = "third-party"
    UNKNOWN = "unknown"


class ProofTier(str, Enum):
    """Proof tiers ordered from strongest to weakest."""

    VERIFIED_ARTIFACT = "VERIFIED_ARTIFACT"
    STRONG_SIGNAL = "STRONG_SIGNAL"
    WEAK_SIGNAL = "WEAK_SIGNAL"
    CLAIM_ONLY = "CLAIM_ONLY"
    NONE = "NONE"

    @property
    def order(self) -> int:
        """Position in the ladder; 0 is the strongest tier."""
        return _TIER_ORDER.index(self)

    @property
    def is_verified(self) -> bool:
        """True for tiers that count toward the verified capability score."""
        return self in (ProofTier.VERIFIED_ARTIFACT, ProofTier.STRONG_SIGNAL)

    def downgrade(self) -> "ProofTier":
        """Return the next weaker tier, stopping at CLAIM_ONLY."""
        if self in (ProofTier.CLAIM_ONLY, ProofTier.NONE):
            return self
        return _TIER_ORDER[self.order + 1]

    def upgrade(self) -> "ProofTier":
        """Return the next stronger tier, stopping at VERIFIED_ARTIFACT."""
        if self in (ProofTier.VERIFIED_ARTIFACT, ProofTier.NONE):
            return self
        return _TIER_ORDER[self.order - 1]


_TIER_ORDER: tuple[ProofTier, ...] = (
    ProofTier.VERIFIED_ARTIFACT,
    ProofTier.STRONG_SIGNAL,
    ProofTier.WEAK_SIGNAL,
    ProofTier.CLAIM_ONLY,
    ProofTier.NONE,
)

TIER_ORDER = _TIER_ORDER


class RawEvidence(BaseModel):
    """Evidence candidate as handed over by ingestion, before classification."""

    source: EvidenceSource
    skill: str = Field(min_length=1)
    text: str = ""
    url: str | None = None
    ownership: Ownership | None = None
    link_reachable: bool | None = None
    last_activity: str | None = None
    strength: float | None = None
    relevance: float | None = None
    recency: float | None = None

    model_config = ConfigDict(extra="ignore")


class EvidenceItem(BaseModel):
    """One classified fact about a candidate, attributable to one source."""

    source: EvidenceSource
    skill: str
    snippet: str = ""
    url: str | None = None
    proof_tier: ProofTier
    strength: float = Field(ge=0.0, le=1.0)
    relevance: float = Field(ge=0.0, le=1.0)
    recency: float = Field(ge=0.0, le=1.0)
    corroborated_by: tuple[EvidenceSource, ...] = ()
    notes: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)
