"""
Per-domain guidance documents for the enrichment prompt.

Built-in text ships with the package. A deployment can override any domain
by dropping `{GUIDANCE_DIR}/{domain}.md` next to the service.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from env_config import Config

logger = logging.getLogger(__name__)

BUILT_IN_GUIDANCE: Dict[str, str] = {
    "epa": (
        "Expected Points Added per play. A top-10 receiving or rushing EPA rank "
        "against a defense allowing top-10 EPA to that position group is a "
        "matchup mismatch. Cite the two ranks only."
    ),
    "pressure": (
        "Pass rush vs pass protection. A top-10 pressure rate against a "
        "bottom-10 pass-block win rate points at sacks and depressed passing. "
        "A QB rating under 60 when pressured strengthens the signal."
    ),
    "weather": (
        "Outdoor conditions only. Wind of 15+ mph limits deep passing, freezing "
        "temperatures and likely precipitation slow scoring. Indoor games never "
        "produce weather findings."
    ),
    "qb": (
        "Quarterback efficiency ranks against pass defense ranks. Turnover-prone "
        "passers facing ball-hawking secondaries point at interceptions."
    ),
    "hb": (
        "Running back volume, efficiency, scoring and receiving role. Volume and "
        "efficiency findings already passed an 80-carry minimum."
    ),
    "wr": (
        "Receiver target share, yardage, touchdowns and separation. Volume and "
        "yardage findings already passed a 50-target minimum."
    ),
    "te": (
        "Tight end target share, yardage, touchdowns and red-zone role, judged "
        "on a top-8 cutoff against TE defense ranks."
    ),
    "notes": (
        "Curated scouting context: key matchups, injuries, weather and stat-like "
        "tendencies. Treat as supporting context, never as new statistics."
    ),
    "injury": (
        "Material absences only: any OUT or DOUBTFUL quarterback, or a starter "
        "or rotation player at other positions. Name the player and status."
    ),
    "usage": (
        "Season vs last-four-game usage. Elite or alpha target share, workhorse "
        "snap share, and rising or falling usage trends. Thin samples are "
        "already filtered out."
    ),
    "pace": (
        "Projected plays from both offenses' tempo. Fast matchups support overs, "
        "slow matchups support unders. High wind removes total markets."
    ),
}


def load_guidance(
    domains: Iterable[str],
    guidance_dir: Optional[str] = None,
    overrides: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """
    Guidance text for each domain present, in the order given.

    Precedence: explicit overrides, then `{guidance_dir}/{domain}.md`, then
    the built-in text.
    """
    directory = guidance_dir if guidance_dir is not None else Config.GUIDANCE_DIR
    overrides = overrides or {}
    result: Dict[str, str] = {}

    for domain in domains:
        if domain in result:
            continue
        if domain in overrides:
            result[domain] = overrides[domain]
            continue
        if directory:
            path = Path(directory) / f"{domain}.md"
            if path.is_file():
                result[domain] = path.read_text(encoding="utf-8")
                logger.debug("Loaded guidance override for %s from %s", domain, path)
                continue
        result[domain] = BUILT_IN_GUIDANCE.get(domain, f"# {domain.upper()}\n\nNo guidance available.")

    return result
