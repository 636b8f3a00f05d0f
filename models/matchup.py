"""
Matchup Context Schema
======================

The already-assembled per-matchup statistics the pipeline consumes. The
pipeline never fetches these itself. Ranks are 1 = best unless a field says
otherwise; usage shares are on a 0-1 scale.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class PlayerStats(BaseModel):
    """Per-player season snapshot."""

    name: str = Field(..., min_length=1)
    team: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    player_id: Optional[str] = None

    # EPA
    receiving_epa_rank: Optional[int] = None
    rushing_epa_rank: Optional[int] = None
    targets: Optional[int] = None
    rushes: Optional[int] = None

    # QB
    qb_rating_rank: Optional[int] = None
    yards_per_attempt_rank: Optional[int] = None
    turnover_pct_rank: Optional[int] = None  # 32 = most turnover-prone
    attempts: Optional[int] = None

    # HB
    rush_yards_rank: Optional[int] = None
    yards_per_carry_rank: Optional[int] = None
    rush_td_rank: Optional[int] = None
    carries: Optional[int] = None
    reception_rank: Optional[int] = None

    # WR / TE
    target_share_rank: Optional[int] = None
    receiving_yards_rank: Optional[int] = None
    receiving_td_rank: Optional[int] = None
    separation_rank: Optional[int] = None
    red_zone_target_rank: Optional[int] = None

    # Usage (season vs last-4 window)
    snap_pct_season: Optional[float] = Field(None, ge=0, le=1)
    snap_pct_l4: Optional[float] = Field(None, ge=0, le=1)
    route_participation_season: Optional[float] = Field(None, ge=0, le=1)
    route_participation_l4: Optional[float] = Field(None, ge=0, le=1)
    target_share_season: Optional[float] = Field(None, ge=0, le=1)
    target_share_l4: Optional[float] = Field(None, ge=0, le=1)

    # Sample sizes for suppression
    games_in_window: Optional[int] = None
    routes_sample: Optional[int] = None
    targets_sample: Optional[int] = None
    injury_limited: bool = False

    @field_validator("position")
    @classmethod
    def _upper_position(cls, v: str) -> str:
        return v.strip().upper()


class TeamStats(BaseModel):
    """Team-level snapshot. Defensive ranks: 32 = most vulnerable."""

    # EPA allowed (1 = allows the most EPA)
    epa_allowed_to_wr_rank: Optional[int] = None
    epa_allowed_to_rb_rank: Optional[int] = None

    # Pressure
    pressure_rate: Optional[float] = None
    pressure_rate_rank: Optional[int] = None
    pass_block_win_rate_rank: Optional[int] = None
    qb_name: Optional[str] = None
    qb_passer_rating_under_pressure: Optional[float] = None

    # Pass defense
    pass_defense_rank: Optional[int] = None
    pass_yards_allowed_rank: Optional[int] = None
    interception_rate_rank: Optional[int] = None  # 1 = most interceptions

    # Rush defense
    rush_defense_rank: Optional[int] = None
    rush_yards_allowed_rank: Optional[int] = None
    rush_td_allowed_rank: Optional[int] = None

    # WR / TE defense
    yards_allowed_to_wr_rank: Optional[int] = None
    td_allowed_to_wr_rank: Optional[int] = None
    te_defense_rank: Optional[int] = None
    yards_allowed_to_te_rank: Optional[int] = None
    td_allowed_to_te_rank: Optional[int] = None

    # Pace (raw inputs only)
    pace_rank: Optional[int] = None  # 1 = fastest
    plays_per_game: Optional[float] = None
    seconds_per_play: Optional[float] = None


class WeatherData(BaseModel):
    temperature: float
    wind_mph: float = Field(..., ge=0)
    precipitation_chance: float = Field(0, ge=0, le=100)
    precipitation_type: Optional[str] = None  # rain | snow | none
    indoor: bool = False
    stadium: Optional[str] = None


class NewsItem(BaseModel):
    date: str
    text: str


class NotesWeather(BaseModel):
    temp_f: Optional[float] = None
    wind_mph: Optional[float] = None
    snow_chance_pct: Optional[float] = None


class GameNotes(BaseModel):
    """Curated scouting notes for one game."""

    key_matchups: List[str] = Field(default_factory=list)
    injuries: Dict[str, List[str]] = Field(default_factory=dict)
    notes: Optional[str] = None
    weather: Optional[NotesWeather] = None
    news: List[NewsItem] = Field(default_factory=list)


class MatchupContext(BaseModel):
    """Everything the Threshold Engine needs for one matchup."""

    home_team: str = Field(..., min_length=1)
    away_team: str = Field(..., min_length=1)
    players: Dict[str, List[PlayerStats]] = Field(default_factory=dict)
    team_stats: Dict[str, TeamStats] = Field(default_factory=dict)
    weather: Optional[WeatherData] = None
    data_timestamp: int = Field(..., gt=0, description="Epoch seconds of the snapshot")
    data_version: str = Field(..., min_length=1)

    injuries: Dict[str, List[str]] = Field(default_factory=dict)
    key_matchups: List[str] = Field(default_factory=list)
    game_notes: Optional[str] = None
    notes: Optional[GameNotes] = None
    year: Optional[int] = None
    week: Optional[int] = None

    @model_validator(mode="after")
    def _distinct_teams(self):
        if self.home_team == self.away_team:
            raise ValueError("home_team and away_team must differ")
        return self

    @property
    def teams(self) -> List[str]:
        """Home first, then away."""
        return [self.home_team, self.away_team]

    def opponent_of(self, team: str) -> str:
        return self.away_team if team == self.home_team else self.home_team

    def players_for(self, team: str) -> List[PlayerStats]:
        return self.players.get(team, [])

    def stats_for(self, team: str) -> TeamStats:
        return self.team_stats.get(team) or TeamStats()

    def curated_notes(self) -> Optional[GameNotes]:
        """Curated notes, or notes assembled from the top-level fields when only those are given."""
        if self.notes is not None:
            return self.notes
        if not (self.key_matchups or self.game_notes):
            return None
        return GameNotes(key_matchups=self.key_matchups, notes=self.game_notes)
