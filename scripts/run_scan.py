#!/usr/bin/env python3
"""
RUN SCAN - Run the terminal pipeline for one matchup context file

Reads a matchup context JSON file, runs the pipeline and prints the
TerminalResponse as JSON on stdout. Logs go to stderr.

Usage:
    # Enriched run (needs LLM_API_KEY)
    python3 scripts/run_scan.py data/kc_buf.json

    # Deterministic fallback, no network
    python3 scripts/run_scan.py data/kc_buf.json --offline

    # Subset of domains, bigger scripts
    python3 scripts/run_scan.py data/kc_buf.json --domains hb,wr,te --max-legs 6

Exit codes:
    0  response printed
    1  context file missing or not JSON
    2  matchup context invalid
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import MatchupContextError  # noqa: E402
from core.structured_logging import configure_structured_logging  # noqa: E402
from env_config import Config  # noqa: E402
from terminal_pipeline import run_terminal_scan_sync  # noqa: E402

logger = logging.getLogger("run_scan")


def notes_path(context: Dict[str, Any], notes_dir: Optional[str]) -> Optional[Path]:
    """{notes_dir}/{year}-wk{week}/{away}@{home}.json, when all parts are known."""
    if not notes_dir:
        return None
    year, week = context.get("year"), context.get("week")
    home, away = context.get("home_team"), context.get("away_team")
    if not all((year, week, home, away)):
        return None
    return Path(notes_dir) / f"{year}-wk{week}" / f"{away}@{home}.json"


def load_context(path: Path, notes_file: Optional[Path] = None) -> Dict[str, Any]:
    """Read the context file and attach curated notes when available."""
    context = json.loads(path.read_text())
    if not isinstance(context, dict):
        raise ValueError("context file must hold a JSON object")

    if context.get("notes") is None:
        notes_file = notes_file or notes_path(context, Config.NOTES_DIR)
        if notes_file is not None and notes_file.exists():
            context["notes"] = json.loads(notes_file.read_text())
            logger.info("Attached game notes from %s", notes_file)
    return context


def parse_domains(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [d.strip() for d in value.split(",") if d.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the terminal pipeline for one matchup")
    parser.add_argument("context", type=Path, help="Path to a matchup context JSON file")
    parser.add_argument("--offline", action="store_true", help="Skip the LLM and use the deterministic fallback")
    parser.add_argument("--domains", default=None, help="Comma-separated rule domains (default: all)")
    parser.add_argument("--notes", type=Path, default=None, help="Curated game notes JSON file")
    parser.add_argument("--max-legs", type=int, default=None, help="Script leg cap (2-6)")
    parser.add_argument("--max-rungs", type=int, default=None, help="Ladder rung cap (1-5)")
    parser.add_argument("--no-aggressive", action="store_true", help="Leave out the aggressive ladder")
    parser.add_argument("--log-format", choices=["json", "text"], default=None, help="Log format (default: LOG_FORMAT)")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent for the response")
    args = parser.parse_args(argv)

    configure_structured_logging(format_type=args.log_format)
    Config.log_status()

    try:
        context = load_context(args.context, args.notes)
    except (OSError, ValueError) as e:
        logger.error("Cannot read %s: %s", args.context, e)
        return 1

    try:
        response = run_terminal_scan_sync(
            context,
            domains=parse_domains(args.domains),
            max_legs=args.max_legs,
            max_rungs=args.max_rungs,
            include_aggressive=not args.no_aggressive,
            use_llm=not args.offline,
        )
    except MatchupContextError as e:
        print(json.dumps(e.to_dict(), indent=args.indent))
        return 2

    print(response.model_dump_json(indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
