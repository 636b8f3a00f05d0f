"""
INJURY.PY - Material absences from curated injury reports

Parses free-text report lines per team, e.g.

    "Patrick Mahomes (QB) - OUT"
    "Travis Kelce (TE, starter) - Doubtful (ankle)"
    "QB Joe Flacco - OUT"

Firing rules:
- status must be OUT or DOUBTFUL
- QB is always material
- RB/WR/TE/OL/DL/LB/CB are material only for a starter or rotation player
- an unrecognised position is material only for a starter
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from core.finding_ids import compose_finding_id
from models.finding import DataQuality, Finding, SourceType
from rules.evaluator import RuleContext, ordered_teams

logger = logging.getLogger(__name__)

INJURY_THRESHOLDS = {
    "material_statuses": ("OUT", "DOUBTFUL"),
    "always_material": ("QB",),
    "conditional_material": ("RB", "WR", "TE", "OL", "DL", "LB", "CB"),
}

STATUS_CONFIDENCE = {"OUT": 0.95, "DOUBTFUL": 0.75}

POSITION_ALIASES = {
    "QB": "QB",
    "RB": "RB", "HB": "RB", "FB": "RB",
    "WR": "WR",
    "TE": "TE",
    "OT": "OL", "OG": "OL", "C": "OL", "OL": "OL", "T": "OL", "G": "OL",
    "DE": "DL", "DT": "DL", "NT": "DL", "DL": "DL",
    "LB": "LB", "ILB": "LB", "OLB": "LB", "MLB": "LB",
    "CB": "CB",
    "S": "S", "FS": "S", "SS": "S",
    "K": "K", "PK": "K",
    "P": "P",
}

INJURY_IMPLICATIONS: Dict[str, Tuple[str, ...]] = {
    "qb_unavailable": ("team_total_under", "qb_pass_yards_under"),
    "oline_unavailable": ("qb_sacks_over", "team_total_under"),
    "defensive_playmaker_unavailable": ("team_total_over",),
    "skill_player_unavailable": ("wr_receptions_over", "team_total_under"),
}

_STATUS_RE = re.compile(r"\b(OUT|DOUBTFUL|QUESTIONABLE|PROBABLE)\b", re.IGNORECASE)
_POSITION_TOKENS = "|".join(sorted(POSITION_ALIASES, key=len, reverse=True))
_POSITION_RE = re.compile(rf"\b({_POSITION_TOKENS})\b")
_PAREN_RE = re.compile(r"\(([^)]*)\)")
_INJURY_WORDS_RE = re.compile(
    r"\s*\b(knee|ankle|hamstring|back|shoulder|concussion|illness|personal|groin|foot|hip)\b.*$",
    re.IGNORECASE,
)


def parse_status(text: str) -> str:
    normalized = text.upper()
    for status in ("OUT", "DOUBTFUL", "QUESTIONABLE", "PROBABLE"):
        if status in normalized:
            return status
    return "ACTIVE"


def parse_position(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return POSITION_ALIASES.get(text.strip().upper())


def parse_designation(text: str) -> str:
    normalized = text.lower()
    if "starter" in normalized or "start" in normalized:
        return "starter"
    if "rotation" in normalized or "rotate" in normalized:
        return "rotation"
    if "depth" in normalized or "backup" in normalized:
        return "depth"
    return "unknown"


def parse_injury_line(line: str) -> Optional[Dict[str, Optional[str]]]:
    """
    Split one report line into player, raw position, status and designation.

    Positions inside parentheses win over a bare token, so initials like
    "C.J." are not read as a center. Returns None when no status or no
    usable name is present.
    """
    status_match = _STATUS_RE.search(line)
    if not status_match:
        return None

    parenthetical = " ".join(_PAREN_RE.findall(line))
    position = None
    pos_match = _POSITION_RE.search(parenthetical.upper())
    if pos_match:
        position = pos_match.group(1)
    else:
        bare = _POSITION_RE.search(_PAREN_RE.sub(" ", line))
        if bare:
            position = bare.group(1)

    name = _PAREN_RE.sub(" ", line)
    name = _STATUS_RE.sub(" ", name)
    if position and not pos_match:
        name = re.sub(rf"\b{position}\b", " ", name, count=1)
    name = re.sub(r"\s*-\s*", " ", name)
    name = _INJURY_WORDS_RE.sub("", name)
    name = re.sub(r"\s+", " ", name).strip()

    if len(name) < 2:
        return None

    return {
        "player": name,
        "position": position,
        "status": status_match.group(1).upper(),
        "designation": parse_designation(parenthetical),
    }


def is_material(status: str, position: Optional[str], designation: str) -> bool:
    if status not in INJURY_THRESHOLDS["material_statuses"]:
        return False
    if position is None:
        return designation == "starter"
    if position in INJURY_THRESHOLDS["always_material"]:
        return True
    if position in INJURY_THRESHOLDS["conditional_material"]:
        return designation in ("starter", "rotation")
    return False


def finding_type_for(position: Optional[str]) -> str:
    if position == "QB":
        return "qb_unavailable"
    if position == "OL":
        return "oline_unavailable"
    if position in ("DL", "LB", "CB", "S"):
        return "defensive_playmaker_unavailable"
    return "skill_player_unavailable"


def check_injuries(injuries: Dict[str, List[str]], ctx: RuleContext) -> List[Finding]:
    """Emit one finding per material absence, home team first."""
    findings: List[Finding] = []

    if not injuries:
        logger.debug("No injury data provided")
        return findings

    for team in ordered_teams(injuries, ctx):
        for line in injuries[team]:
            entry = parse_injury_line(line)
            if entry is None:
                continue

            status = parse_status(entry["status"])
            position = parse_position(entry["position"])
            designation = entry["designation"]

            if not is_material(status, position, designation):
                logger.debug(
                    "Skipping non-material injury: %s (%s, %s, %s)",
                    entry["player"], status, position or "unknown", designation,
                )
                continue

            finding_type = finding_type_for(position)
            findings.append(Finding(
                id=compose_finding_id("injury", f"{team} {entry['player']}", status.lower(), ctx.data_timestamp),
                domain="injury",
                type=finding_type,
                stat="player_status",
                value=status,
                threshold_met=f"status in [{', '.join(INJURY_THRESHOLDS['material_statuses'])}]",
                comparison_context=f"{entry['player']} ({position or 'unknown'}) is {status}",
                source_ref=f"notes://injuries/{team}",
                source_type=SourceType.NOTES,
                source_timestamp=ctx.data_timestamp,
                confidence=STATUS_CONFIDENCE[status],
                subject=entry["player"],
                team=team,
                data_quality=DataQuality.FULL,
                implications=INJURY_IMPLICATIONS[finding_type],
                raw_text=line,
                payload={
                    "status": status,
                    "player": entry["player"],
                    "team": team,
                    "position": position or "unknown",
                    "designation": designation,
                },
            ))

    return findings
