"""
ANALYST - Enrichment Transformer

Finding[] -> Alert[] through one validated collaborator call, with a
deterministic fallback that keeps the output shape identical.
"""

from .fallback import build_fallback_alert, fallback_alerts, fallback_claim
from .guidance import BUILT_IN_GUIDANCE, load_guidance
from .llm_client import LLMClient, OpenAICompatibleClient, parse_response
from .prompt import build_prompt, check_prompt_budget, estimate_tokens
from .transformer import EnrichmentOutcome, call_with_timeout, enrich_findings
from .validation import Absent, Rejected, Validated, validate_record, validate_response

__all__ = [
    "build_fallback_alert",
    "fallback_alerts",
    "fallback_claim",
    "BUILT_IN_GUIDANCE",
    "load_guidance",
    "LLMClient",
    "OpenAICompatibleClient",
    "parse_response",
    "build_prompt",
    "check_prompt_budget",
    "estimate_tokens",
    "EnrichmentOutcome",
    "call_with_timeout",
    "enrich_findings",
    "Absent",
    "Rejected",
    "Validated",
    "validate_record",
    "validate_response",
]
