"""
PROMPT.PY - Enrichment prompt builder and input guardrails

One prompt per batch. It carries the guidance for the domains present, any
curated game notes, the findings (sorted by id), the implication allow-list
per domain and a closed-world instruction set. The output contract is a JSON
object keyed by finding id.
"""

import json
import math
from typing import Dict, List, Optional

from core.errors import ErrorCode, GuardrailError
from models.claim import ClaimMetric, ComparisonTarget, ContextQualifier, RankScope
from models.finding import Finding, sort_findings
from models.implications import allowed_for
from models.matchup import GameNotes

SYSTEM_PROMPT = (
    "You are a football statistics analyst. Output only valid JSON. "
    "No markdown, no explanation."
)

OUTPUT_FORMAT = """{
  "<finding_id>": {
    "severity": "high" | "medium",
    "claim_parts": {
      "metrics": ["receiving_epa"],
      "direction": "positive" | "negative" | "neutral",
      "comparator": "ranks" | "exceeds" | "trails" | "matches" | "diverges_from",
      "rank_or_percentile": {"type": "rank" | "percentile", "value": 5, "scope": "<scope>", "direction": "top" | "bottom"},
      "comparison_target": "<comparison_target>",
      "context_qualifier": "<context_qualifier>"
    },
    "implications": ["wr_yards_over"],
    "suppressions": []
  }
}"""

RULES = [
    "Reference ONLY the findings listed above. Do not invent statistics, players or markets.",
    "Use ONLY implications from the finding's domain list above.",
    'severity "high" ONLY for an elite mismatch (top 5 vs bottom 5); otherwise "medium".',
    "metrics must contain 1 to 3 values from the valid metric list.",
    "rank_or_percentile, comparison_target and context_qualifier are optional.",
    "scope, comparison_target and context_qualifier must be values from the lists above. No other text.",
    "Add a suppression reason when a finding should not be shown.",
    "Output valid JSON only. No markdown, no explanation.",
]


def estimate_tokens(text: str) -> int:
    """Rough token count (4 characters per token)."""
    return math.ceil(len(text) / 4)


def check_prompt_budget(prompt: str, max_tokens: int) -> int:
    """Raise GuardrailError when the prompt exceeds the input budget."""
    tokens = estimate_tokens(prompt)
    if tokens > max_tokens:
        raise GuardrailError(
            f"Prompt is ~{tokens} tokens, budget is {max_tokens}",
            code=ErrorCode.PROMPT_TOO_LARGE,
        )
    return tokens


def _notes_section(notes: GameNotes) -> str:
    parts: List[str] = []
    if notes.notes:
        parts.append(f"Scout Report: {notes.notes}")
    if notes.injuries:
        lines = "\n".join(f"{team}: {', '.join(items)}" for team, items in notes.injuries.items())
        parts.append(f"Injuries:\n{lines}")
    if notes.key_matchups:
        parts.append("Key Matchups:\n- " + "\n- ".join(notes.key_matchups))
    if not parts:
        return ""
    return "## Game Notes\n\n" + "\n\n".join(parts)


def _vocabulary_section() -> str:
    lines = [
        f"- scope: {', '.join(s.value for s in RankScope)}",
        f"- comparison_target: {', '.join(t.value for t in ComparisonTarget)}",
        f"- context_qualifier: {', '.join(q.value for q in ContextQualifier)}",
    ]
    return "## Valid Claim Values\n\n" + "\n".join(lines)


def build_prompt(
    findings: List[Finding],
    guidance: Dict[str, str],
    game_notes: Optional[GameNotes] = None,
) -> str:
    ordered = sort_findings(findings)
    domains = list(dict.fromkeys(f.domain for f in ordered))

    sections = ["You turn raw statistical findings into concise, factual alerts."]

    guidance_blocks = [
        f"## {domain.upper()} Guidance\n\n{guidance[domain]}"
        for domain in domains if domain in guidance
    ]
    if guidance_blocks:
        sections.append("\n\n".join(guidance_blocks))

    if game_notes is not None:
        notes_block = _notes_section(game_notes)
        if notes_block:
            sections.append(notes_block)

    findings_json = json.dumps(
        [f.model_dump(mode="json", exclude_none=True) for f in ordered],
        indent=2,
        sort_keys=True,
    )
    sections.append(f"## Findings\n\n{findings_json}")

    allow_lines = "\n".join(f"- {d.upper()}: {', '.join(allowed_for(d))}" for d in domains)
    sections.append(f"## Valid Implications by Domain\n\n{allow_lines}")
    sections.append("## Valid Metrics\n\n" + ", ".join(m.value for m in ClaimMetric))
    sections.append(_vocabulary_section())
    sections.append("## Rules\n\n" + "\n".join(f"{i}. {rule}" for i, rule in enumerate(RULES, 1)))
    sections.append(f"## Output Format\n\n{OUTPUT_FORMAT}\n\nRespond with ONLY the JSON object.")

    return "\n\n---\n\n".join(sections)
