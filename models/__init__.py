"""
models - Pydantic data model for the terminal pipeline
"""

from .finding import Finding, Domain, SourceType, DataQuality, sort_findings
from .alert import Alert, Evidence, Severity, Freshness, freshness_for_age, surfaced
from .claim import ClaimParts, render_claim
from .matchup import MatchupContext, PlayerStats, TeamStats, WeatherData, GameNotes
from .portfolio import (
    CorrelationType,
    Ladder,
    LadderTier,
    RiskLevel,
    Rung,
    Script,
    ScriptLeg,
)
from .provenance import ProvenanceRecord, TerminalResponse, MatchupRef
from .implications import (
    ALLOWED_IMPLICATIONS,
    DEFAULT_IMPLICATIONS,
    allowed_for,
    fallback_implications,
    filter_allowed,
)

__all__ = [
    "Finding", "Domain", "SourceType", "DataQuality", "sort_findings",
    "Alert", "Evidence", "Severity", "Freshness", "freshness_for_age", "surfaced",
    "ClaimParts", "render_claim",
    "MatchupContext", "PlayerStats", "TeamStats", "WeatherData", "GameNotes",
    "CorrelationType", "Ladder", "LadderTier", "RiskLevel", "Rung", "Script", "ScriptLeg",
    "ProvenanceRecord", "TerminalResponse", "MatchupRef",
    "ALLOWED_IMPLICATIONS", "DEFAULT_IMPLICATIONS", "allowed_for",
    "fallback_implications", "filter_allowed",
]
