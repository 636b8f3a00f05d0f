"""
TERMINAL_PIPELINE.PY - One matchup in, one auditable response out

    MatchupContext
      -> Threshold Engine (rules.runner)          Finding[]
      -> Confidence Calculator                    scored Finding[]
      -> Enrichment Transformer (analyst)         Alert[] (+ fallback flag)
      -> Correlation Identifier -> Script Assembler
      -> Ladder Organizer
      -> Provenance

Only a malformed matchup context raises (MatchupContextError). Suppressed
findings, rejected enrichment records and collaborator failures all end in a
well-formed TerminalResponse.

Usage:
    from terminal_pipeline import run_terminal_scan

    response = await run_terminal_scan(context_dict)
    response.alerts, response.fallback, response.provenance
"""

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from analyst.llm_client import LLMClient
from analyst.transformer import enrich_findings
from confidence_calculator import apply_confidence
from core.errors import ErrorCode, ErrorDetail, MatchupContextError
from core.invariants import enforce_invariant
from core.provenance import build_provenance
from core.structured_logging import log_info, run_scope
from correlation_engine import identify_correlations
from ladder_organizer import organize_ladders
from models.alert import surfaced
from models.matchup import MatchupContext
from models.provenance import MatchupRef, TerminalResponse
from rules.runner import run_rules
from script_assembler import assemble_scripts
from validators.alert_integrity import validate_alerts

logger = logging.getLogger(__name__)


def load_matchup_context(raw: Union[MatchupContext, Mapping[str, Any]]) -> MatchupContext:
    """
    Validate raw input into a MatchupContext.

    Raises:
        MatchupContextError listing every missing or invalid field
    """
    if isinstance(raw, MatchupContext):
        return raw
    if not isinstance(raw, Mapping):
        raise MatchupContextError(
            "Matchup context must be an object",
            details=[ErrorDetail(ErrorCode.INVALID_FIELD, f"got {type(raw).__name__}")],
        )

    try:
        return MatchupContext.model_validate(dict(raw))
    except ValidationError as e:
        details = []
        for err in e.errors():
            code = ErrorCode.MISSING_FIELD if err["type"] == "missing" else ErrorCode.INVALID_FIELD
            location = ".".join(str(part) for part in err["loc"]) or None
            details.append(ErrorDetail(code, err["msg"], location))
        raise MatchupContextError("Matchup context is invalid", details=details) from e


async def run_terminal_scan(
    context: Union[MatchupContext, Mapping[str, Any]],
    *,
    llm_client: Optional[LLMClient] = None,
    guidance: Optional[Dict[str, str]] = None,
    domains: Optional[Iterable[str]] = None,
    max_legs: Optional[int] = None,
    max_rungs: Optional[int] = None,
    include_aggressive: bool = True,
    as_of: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
    run_id: Optional[str] = None,
    use_llm: bool = True,
    concurrent: bool = False,
) -> TerminalResponse:
    """
    Run the full pipeline for one matchup.

    Args:
        context: MatchupContext or a dict that validates into one
        llm_client: Collaborator; defaults to the env-configured client
        guidance: Per-domain guidance overrides
        domains: Subset of rule domains (all by default)
        max_legs: Script leg cap (2-6)
        max_rungs: Ladder rung cap (1-5)
        include_aggressive: Build the aggressive ladder tier
        as_of: Reference timestamp for confidence age and alert freshness;
            defaults to the snapshot timestamp
        cancel_event: Setting it abandons the collaborator call (fallback)
        run_id: Explicit run id; generated when omitted
        use_llm: False forces the deterministic fallback
        concurrent: Evaluate rule domains on a thread pool

    Returns:
        TerminalResponse

    Raises:
        MatchupContextError: the context is missing or has invalid fields
    """
    started = time.perf_counter()
    matchup = load_matchup_context(context)

    with run_scope(run_id) as current_run_id:
        log_info(
            logger, "Terminal scan started",
            home=matchup.home_team, away=matchup.away_team, data_version=matchup.data_version,
        )

        try:
            engine = run_rules(matchup, domains=domains, concurrent=concurrent)
        except ValueError as e:
            raise MatchupContextError(
                str(e), details=[ErrorDetail(ErrorCode.INVALID_FIELD, str(e), "domains")],
            ) from e

        reference = matchup.data_timestamp if as_of is None else as_of
        findings = apply_confidence(engine.findings, reference_timestamp=reference)

        enrichment = await enrich_findings(
            findings,
            client=llm_client,
            guidance=guidance,
            game_notes=matchup.curated_notes(),
            as_of=reference,
            cancel_event=cancel_event,
            use_llm=use_llm,
        )

        for violation in validate_alerts(enrichment.alerts, findings, as_of=reference):
            enforce_invariant(False, f"INVARIANT VIOLATION: alert integrity {violation}")

        alerts = surfaced(enrichment.alerts)
        suppressed = [a for a in enrichment.alerts if a.suppressions]

        groups = identify_correlations(alerts)
        scripts = assemble_scripts(groups, alerts, max_legs=max_legs)
        ladders = organize_ladders(alerts, max_rungs=max_rungs, include_aggressive=include_aggressive)

        provenance = build_provenance(
            run_id=current_run_id,
            findings=findings,
            alerts=enrichment.alerts,
            data_version=matchup.data_version,
            data_timestamp=matchup.data_timestamp,
            domains_invoked=engine.domains_invoked,
            domains_silent=engine.domains_silent,
            llm_model=enrichment.model,
            prompt=enrichment.prompt,
            guidance=enrichment.guidance,
            llm_temperature=enrichment.temperature,
        )

        timing_ms = int((time.perf_counter() - started) * 1000)
        log_info(
            logger, "Terminal scan complete",
            findings=len(findings), alerts=len(alerts), suppressed=len(suppressed),
            scripts=len(scripts), ladders=len(ladders.ladders),
            fallback=enrichment.fallback, warnings=len(enrichment.warnings), timing_ms=timing_ms,
        )

        return TerminalResponse(
            run_id=current_run_id,
            matchup=MatchupRef(home=matchup.home_team, away=matchup.away_team),
            alerts=alerts,
            suppressed_alerts=suppressed,
            findings=findings,
            scripts=scripts,
            ladders=ladders.ladders,
            provenance=provenance,
            fallback=enrichment.fallback,
            warnings=enrichment.warnings,
            timing_ms=timing_ms,
        )


def run_terminal_scan_sync(context: Union[MatchupContext, Mapping[str, Any]], **kwargs: Any) -> TerminalResponse:
    """Blocking wrapper for callers without an event loop."""
    return asyncio.run(run_terminal_scan(context, **kwargs))
