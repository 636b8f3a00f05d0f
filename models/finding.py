"""
Finding Schema
==============

A Finding is an atomic, deterministic observation emitted by one rule domain.
It is frozen once emitted and carries no severity or narrative. The only
sanctioned change is the Confidence Calculator returning a copy with
`confidence` filled in.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.implications import allowed_for


class Domain(str, Enum):
    EPA = "epa"
    PRESSURE = "pressure"
    WEATHER = "weather"
    QB = "qb"
    HB = "hb"
    WR = "wr"
    TE = "te"
    NOTES = "notes"
    INJURY = "injury"
    USAGE = "usage"
    PACE = "pace"


class SourceType(str, Enum):
    LOCAL = "local"
    WEB = "web"
    NOTES = "notes"
    MATCHUP_CONTEXT = "matchup_context"


class DataQuality(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    FALLBACK = "fallback"


class Finding(BaseModel):
    """Atomic statistical observation from one rule domain."""

    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=True)

    id: str = Field(..., min_length=1)
    domain: Domain
    type: str = Field(..., description="Domain-scoped tag, e.g. hb_volume_advantage")
    stat: str
    value: Union[int, float, str]
    threshold_met: str
    comparison_context: str
    source_ref: str
    source_type: SourceType
    source_timestamp: int = Field(..., description="Epoch seconds of the underlying stat")

    # Filled by the Confidence Calculator, or by the rule for domains that
    # score their own signal strength (injury, usage, pace, notes)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)

    # Subject identity
    subject: Optional[str] = None
    team: Optional[str] = None

    # Sample behind the stat (carries, targets, attempts, ...)
    sample_size: Optional[int] = None
    data_quality: DataQuality = DataQuality.FULL

    # Rank facts for rank checks, as reported by the source
    subject_rank: Optional[int] = None
    opponent_rank: Optional[int] = None
    extreme_matchup: Optional[bool] = Field(
        None,
        description="Both sides inside the top-5 / bottom-5 band; None for non-rank findings",
    )

    # Rule-suggested markets, always inside the domain allow-list
    implications: Tuple[str, ...] = ()

    # Curated-notes extras
    raw_text: Optional[str] = None
    players_mentioned: Tuple[str, ...] = ()

    payload: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _implications_in_allow_list(self):
        allowed = allowed_for(self.domain)
        outside = [imp for imp in self.implications if imp not in allowed]
        if outside:
            raise ValueError(f"implications outside {self.domain} allow-list: {outside}")
        return self

    @property
    def is_rank_finding(self) -> bool:
        return self.extreme_matchup is not None

    def with_confidence(self, confidence: float) -> "Finding":
        """Return a copy carrying the given confidence."""
        return self.model_copy(update={"confidence": confidence})


def sort_findings(findings: List[Finding]) -> List[Finding]:
    """Findings ordered by id, for order-independent hashing."""
    return sorted(findings, key=lambda f: f.id)
