"""
TRANSFORMER.PY - Finding[] -> Alert[]

Builds one bounded prompt per batch, makes one collaborator call under a
timeout (optionally cancellable), validates each record independently and
assembles alerts from validated fields plus code-derived finding fields.

Two outcomes, same output shape:
- enriched: validated records become alerts; rejected or absent findings
  are dropped with a warning string. Content that is not a JSON object
  leaves every finding absent, with a single LLM_MALFORMED warning
- fallback: any collaborator failure renders every finding deterministically
  and sets `fallback=True`

Usage:
    from analyst.transformer import enrich_findings

    result = await enrich_findings(findings, client=client, as_of=ts)
    result.alerts, result.fallback, result.warnings
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from analyst.assembly import assemble_alert
from analyst.fallback import fallback_alerts
from analyst.guidance import load_guidance
from analyst.llm_client import LLMClient, OpenAICompatibleClient, parse_response
from analyst.prompt import build_prompt, check_prompt_budget
from analyst.validation import Validated, unparseable_report, validate_response
from core.errors import ErrorCode, GuardrailError, LLMUnavailableError, MalformedOutputError, format_warning
from core.structured_logging import log_warning
from env_config import Config
from models.alert import Alert
from models.finding import Finding
from models.matchup import GameNotes

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "fallback"


@dataclass
class EnrichmentOutcome:
    alerts: List[Alert] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    fallback: bool = False
    fallback_reason: Optional[str] = None
    prompt: Optional[str] = None
    guidance: Dict[str, str] = field(default_factory=dict)
    model: str = FALLBACK_MODEL
    temperature: Optional[float] = None


async def call_with_timeout(
    client: LLMClient,
    prompt: str,
    timeout_s: float,
    cancel_event: Optional[asyncio.Event] = None,
) -> str:
    """
    Run one collaborator call, racing it against the timeout and the cancel event.

    Raises LLMUnavailableError on timeout or cancellation. Nothing is left
    running when this returns.
    """
    call = asyncio.ensure_future(client.complete(prompt))
    waiters = {call}
    cancel_wait = None
    if cancel_event is not None:
        cancel_wait = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_wait)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout_s, return_when=asyncio.FIRST_COMPLETED)
    finally:
        pending = [t for t in waiters if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if call in done:
        return call.result()
    if cancel_wait is not None and cancel_wait in done:
        raise LLMUnavailableError("LLM call cancelled", code=ErrorCode.LLM_CANCELLED)
    raise LLMUnavailableError(f"LLM call exceeded {timeout_s}s", code=ErrorCode.LLM_TIMEOUT)


def _fallback(
    outcome: EnrichmentOutcome,
    findings: List[Finding],
    code: str,
    message: str,
    as_of: Optional[int],
) -> EnrichmentOutcome:
    log_warning(logger, "Enrichment fallback", code=code, reason=message, findings=len(findings))
    outcome.alerts = fallback_alerts(findings, as_of)
    outcome.fallback = True
    outcome.fallback_reason = code
    outcome.model = FALLBACK_MODEL
    outcome.temperature = None
    outcome.warnings.append(format_warning(code, message))
    return outcome


async def enrich_findings(
    findings: List[Finding],
    *,
    client: Optional[LLMClient] = None,
    guidance: Optional[Dict[str, str]] = None,
    game_notes: Optional[GameNotes] = None,
    as_of: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
    timeout_s: Optional[float] = None,
    max_input_tokens: Optional[int] = None,
    use_llm: bool = True,
) -> EnrichmentOutcome:
    """
    Enrich scored findings into alerts.

    Args:
        findings: Findings with confidence already applied
        client: Collaborator; defaults to the env-configured client
        guidance: Per-domain guidance overrides
        game_notes: Curated notes to include in the prompt
        as_of: Reference timestamp for alert freshness
        cancel_event: Setting it abandons the call and falls back
        timeout_s: Call timeout (default LLM_TIMEOUT_S)
        max_input_tokens: Prompt budget (default LLM_MAX_INPUT_TOKENS)
        use_llm: False forces the deterministic fallback

    Returns:
        EnrichmentOutcome; never raises for collaborator problems
    """
    outcome = EnrichmentOutcome()
    if not findings:
        return outcome

    outcome.guidance = load_guidance((f.domain for f in findings), overrides=guidance)

    if client is None and use_llm:
        client = OpenAICompatibleClient.from_config()
    if client is None or not use_llm:
        return _fallback(outcome, findings, ErrorCode.LLM_DISABLED, "LLM collaborator not available", as_of)

    outcome.prompt = build_prompt(findings, outcome.guidance, game_notes)
    timeout = Config.LLM_TIMEOUT_S if timeout_s is None else timeout_s
    budget = Config.LLM_MAX_INPUT_TOKENS if max_input_tokens is None else max_input_tokens

    try:
        check_prompt_budget(outcome.prompt, budget)
        raw = await call_with_timeout(client, outcome.prompt, timeout, cancel_event)
    except (GuardrailError, LLMUnavailableError) as e:
        return _fallback(outcome, findings, e.code, e.message, as_of)
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            raise
        return _fallback(outcome, findings, ErrorCode.LLM_CANCELLED, "LLM call cancelled", as_of)
    except Exception as e:
        logger.warning("LLM client raised %s", type(e).__name__, exc_info=True)
        return _fallback(outcome, findings, ErrorCode.LLM_TRANSPORT, f"{type(e).__name__}: {e}", as_of)

    outcome.model = getattr(client, "model", "unknown")
    outcome.temperature = getattr(client, "temperature", None)

    try:
        report = validate_response(parse_response(raw), findings)
    except MalformedOutputError as e:
        log_warning(logger, "Unparseable enrichment output", reason=e.message, findings=len(findings))
        report = unparseable_report(findings, e.message)
    outcome.warnings.extend(report.warnings)

    for finding in findings:
        result = report.results[finding.id]
        if not isinstance(result, Validated):
            continue
        outcome.alerts.append(assemble_alert(
            finding,
            severity=result.severity,
            claim=result.claim,
            implications=result.implications,
            suppressions=result.suppressions,
            as_of=as_of,
        ))

    logger.info(
        "Enriched %d/%d findings with %s (%d warnings)",
        len(outcome.alerts), len(findings), outcome.model, len(outcome.warnings),
    )
    return outcome
