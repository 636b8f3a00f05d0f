"""
Portfolio Schemas - Scripts and Ladders
=======================================

Script: a correlated 2-6 leg combination priced as a parlay.
Ladder: a risk tier of 1-5 independent single-leg rungs.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.invariants import (
    COMBINED_CONFIDENCE_CEILING,
    LADDER_MAX_RUNGS,
    LADDER_MIN_RUNGS,
    SCRIPT_MAX_LEGS,
    SCRIPT_MIN_LEGS,
    STAKE_PCT_MAX,
    STAKE_PCT_MIN,
)
from models.finding import Domain


class CorrelationType(str, Enum):
    WEATHER_CASCADE = "weather_cascade"
    DEFENSIVE_FUNNEL = "defensive_funnel"
    VOLUME_SHARE = "volume_share"
    GAME_SCRIPT = "game_script"
    PLAYER_STACK = "player_stack"


class RiskLevel(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class LadderTier(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


# =============================================================================
# SCRIPTS
# =============================================================================

class ScriptLeg(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    alert_id: str
    market: str
    implied_probability: float = Field(..., ge=0.0, le=1.0)
    domain: Domain


class Script(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    name: str
    correlation_type: CorrelationType
    legs: List[ScriptLeg]
    combined_confidence: float = Field(..., ge=0.0)
    risk_level: RiskLevel
    explanation: str
    provenance_hash: str

    @model_validator(mode="after")
    def _shape(self):
        if not SCRIPT_MIN_LEGS <= len(self.legs) <= SCRIPT_MAX_LEGS:
            raise ValueError(f"script needs {SCRIPT_MIN_LEGS}-{SCRIPT_MAX_LEGS} legs, got {len(self.legs)}")
        if self.combined_confidence >= COMBINED_CONFIDENCE_CEILING:
            raise ValueError(f"combined_confidence must stay below {COMBINED_CONFIDENCE_CEILING}")
        return self

    @property
    def alert_ids(self) -> List[str]:
        return [leg.alert_id for leg in self.legs]


# =============================================================================
# LADDERS
# =============================================================================

class Rung(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    alert_id: str
    market: str
    line: Optional[float] = None
    implied_probability: Optional[float] = Field(None, ge=0.0, le=1.0)
    domain: Domain
    rationale: str


class Ladder(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    tier: LadderTier
    name: str
    rungs: List[Rung] = Field(..., min_length=LADDER_MIN_RUNGS, max_length=LADDER_MAX_RUNGS)
    # Mean of rung probabilities: rungs are independent single bets, not a parlay
    total_implied_probability: float = Field(..., ge=0.0, le=1.0)
    recommended_stake_pct: float = Field(..., ge=STAKE_PCT_MIN, le=STAKE_PCT_MAX)
