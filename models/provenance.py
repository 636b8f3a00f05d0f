"""
Provenance and Response Schemas
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.alert import Alert
from models.finding import Finding
from models.portfolio import Ladder, Script


class ProvenanceRecord(BaseModel):
    """Content-hash audit record for one terminal run."""

    run_id: str
    prompt_hash: Optional[str] = None  # None when the prompt was never built
    guidance_hashes: Dict[str, str] = Field(default_factory=dict)
    findings_hash: str
    alerts_hash: str
    data_version: str
    data_timestamp: int
    domains_invoked: List[str] = Field(default_factory=list)
    domains_silent: List[str] = Field(default_factory=list)
    llm_model: str  # model identity, or "fallback"
    llm_temperature: Optional[float] = None


class MatchupRef(BaseModel):
    home: str
    away: str


class TerminalResponse(BaseModel):
    """
    Output of one scan. `alerts` is the primary contract and has the same
    shape on the enriched and fallback paths.
    """

    run_id: str
    matchup: MatchupRef
    alerts: List[Alert] = Field(default_factory=list)
    suppressed_alerts: List[Alert] = Field(default_factory=list)
    findings: List[Finding] = Field(default_factory=list)
    scripts: List[Script] = Field(default_factory=list)
    ladders: List[Ladder] = Field(default_factory=list)
    provenance: ProvenanceRecord
    fallback: bool = False
    warnings: List[str] = Field(default_factory=list)
    timing_ms: int = 0
