"""
NOTES.PY - Curated game intelligence

Turns a game's scouting notes into context findings: key matchups,
reported injuries, weather, stat-like sentences from the free-text notes,
and news items. These findings only add context; they never add or remove
players from consideration.
"""

import logging
import re
from typing import List, Optional, Tuple

from core.finding_ids import compose_finding_id
from models.finding import DataQuality, Finding, SourceType
from models.matchup import GameNotes
from rules.evaluator import RuleContext, ordered_teams

logger = logging.getLogger(__name__)

NOTE_CONFIDENCE = {
    "note_key_matchup": 0.9,
    "note_injury_context": 0.95,
    "note_weather_context": 0.85,
    "note_tendency": 0.85,
    "note_news": 0.9,
}

NOTE_IMPLICATIONS = {
    "note_weather_context": ("game_total_under",),
}

# Whitelist of stat-like phrasing for tendency extraction
STAT_PATTERNS = [
    re.compile(r"%"),
    re.compile(r"\d+\.\d+\s*YPC", re.IGNORECASE),
    re.compile(r"\d+\.\d+\s*YPA", re.IGNORECASE),
    re.compile(r"\d+\.\d+\s*YPP", re.IGNORECASE),
    re.compile(r"\d+(?:st|nd|rd|th)\b", re.IGNORECASE),
    re.compile(r"\d+\s*pressures?", re.IGNORECASE),
    re.compile(r"\d+\s*sacks?", re.IGNORECASE),
    re.compile(r"\d+\s*targets?", re.IGNORECASE),
    re.compile(r"target share", re.IGNORECASE),
    re.compile(r"pressure rate", re.IGNORECASE),
    re.compile(r"snaps?\b", re.IGNORECASE),
    re.compile(r"passer rating", re.IGNORECASE),
    re.compile(r"\d+/\d+/\d+"),
    re.compile(r"\d+-\d+\s+TD", re.IGNORECASE),
    re.compile(r"allowed\s+\d+", re.IGNORECASE),
    re.compile(r"held.*to\s+\d", re.IGNORECASE),
    re.compile(r"rank", re.IGNORECASE),
]

_NAME_RE = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b")
_SENTENCE_SPLIT_RE = re.compile(r"[.!]\s+")

SKIP_WORDS = {
    "The", "This", "That", "When", "Where", "What", "Which", "While",
    "With", "From", "Into", "Over", "Under", "After", "Before",
    "Game", "Total", "Team", "Props", "Spread", "Line", "Week",
    "Wild", "Card", "Round", "Sunday", "Saturday", "Monday", "Thursday",
}


def matches_stat_pattern(text: str) -> bool:
    return any(p.search(text) for p in STAT_PATTERNS)


def extract_player_names(text: str) -> Tuple[str, ...]:
    """Capitalised one- or two-word names, minus common sentence words."""
    names = []
    for name in _NAME_RE.findall(text):
        if name in SKIP_WORDS or name in names:
            continue
        names.append(name)
    return tuple(names)


def _weather_text(notes: GameNotes) -> str:
    w = notes.weather
    if w is None:
        return ""
    parts = []
    if w.temp_f is not None:
        parts.append(f"{w.temp_f:g}F")
    if w.wind_mph is not None:
        parts.append(f"{w.wind_mph:g} mph wind")
    if w.snow_chance_pct is not None:
        parts.append(f"{w.snow_chance_pct:g}% snow chance")
    return ", ".join(parts)


def check_notes(notes: Optional[GameNotes], ctx: RuleContext) -> List[Finding]:
    """Emit context findings from a game's curated notes. Needs year and week."""
    if notes is None:
        return []
    if ctx.year is None or ctx.week is None:
        logger.debug("Notes present but no year/week on context; skipping")
        return []

    game = f"{ctx.away_team}@{ctx.home_team}"
    source_ref = f"notes://{ctx.year}-wk{ctx.week}/{game}"
    findings: List[Finding] = []

    def emit(kind: str, finding_type: str, stat: str, value: str, context: str, raw: str,
             players: Tuple[str, ...] = ()) -> None:
        findings.append(Finding(
            id=compose_finding_id("notes", game, f"{kind}-{len(findings)}", ctx.data_timestamp),
            domain="notes",
            type=finding_type,
            stat=stat,
            value=value,
            threshold_met=f"curated_{kind}",
            comparison_context=context,
            source_ref=source_ref,
            source_type=SourceType.NOTES,
            source_timestamp=ctx.data_timestamp,
            confidence=NOTE_CONFIDENCE[finding_type],
            subject=game,
            data_quality=DataQuality.FULL,
            implications=NOTE_IMPLICATIONS.get(finding_type, ()),
            raw_text=raw,
            players_mentioned=players,
        ))

    for matchup in notes.key_matchups:
        emit("matchup", "note_key_matchup", "key_matchup", matchup, matchup, matchup,
             extract_player_names(matchup))

    for team in ordered_teams(notes.injuries, ctx):
        for injury in notes.injuries[team]:
            text = f"{team}: {injury}"
            emit("injury", "note_injury_context", "injury", text, text, injury,
                 extract_player_names(injury))

    weather_text = _weather_text(notes)
    if weather_text:
        emit("weather", "note_weather_context", "weather", weather_text, weather_text, weather_text)

    if notes.notes:
        for sentence in (s.strip() for s in _SENTENCE_SPLIT_RE.split(notes.notes)):
            if sentence and matches_stat_pattern(sentence):
                emit("tendency", "note_tendency", "tendency", sentence, sentence, sentence,
                     extract_player_names(sentence))

    for item in notes.news:
        emit("news", "note_news", "news", item.text, f"[{item.date}] {item.text}", item.text,
             extract_player_names(item.text))

    logger.debug("Notes emitted %d findings for %s", len(findings), game)
    return findings
