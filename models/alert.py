"""
Alert Schema
============

An Alert is derived from exactly one Finding.

CODE-DERIVED (copied verbatim from the Finding, never from the collaborator):
    id, domain, type, confidence, evidence, sources, freshness, team, subject

ENRICHMENT-DERIVED (validated collaborator output or the fallback renderer):
    severity, claim, implications, suppressions

An Alert with non-empty suppressions never reaches correlation, scripts or
ladders.
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.invariants import MAX_CLAIM_LENGTH, MAX_IMPLICATIONS, MIN_IMPLICATIONS
from models.finding import Domain, SourceType
from models.implications import allowed_for

DAY_SECONDS = 86400


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class Freshness(str, Enum):
    LIVE = "live"       # < 1 day old
    WEEKLY = "weekly"   # < 7 days old
    STALE = "stale"


def freshness_for_age(age_seconds: float) -> str:
    """Bucket an evidence age into live / weekly / stale."""
    if age_seconds < DAY_SECONDS:
        return Freshness.LIVE.value
    if age_seconds < 7 * DAY_SECONDS:
        return Freshness.WEEKLY.value
    return Freshness.STALE.value


class Evidence(BaseModel):
    """One piece of sourced evidence behind an alert."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    source_type: SourceType
    source_ref: str
    stat: str
    value: Union[int, float, str]
    comparison_context: str
    timestamp: int


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=True)

    # Code-derived
    id: str
    domain: Domain
    type: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    evidence: List[Evidence] = Field(..., min_length=1)
    sources: List[str] = Field(default_factory=list)
    freshness: Freshness
    team: Optional[str] = None
    subject: Optional[str] = None

    # Enrichment-derived
    severity: Severity
    claim: str = Field(..., min_length=1, max_length=MAX_CLAIM_LENGTH)
    implications: List[str] = Field(..., min_length=MIN_IMPLICATIONS, max_length=MAX_IMPLICATIONS)
    suppressions: List[str] = Field(default_factory=list)

    # True when rendered by the deterministic fallback
    fallback: bool = False

    @model_validator(mode="after")
    def _implications_in_allow_list(self):
        allowed = allowed_for(self.domain)
        outside = [imp for imp in self.implications if imp not in allowed]
        if outside:
            raise ValueError(f"implications outside {self.domain} allow-list: {outside}")
        return self

    @property
    def is_suppressed(self) -> bool:
        return bool(self.suppressions)


def surfaced(alerts: List[Alert]) -> List[Alert]:
    """Alerts with no suppressions, in their original order."""
    return [a for a in alerts if not a.suppressions]
