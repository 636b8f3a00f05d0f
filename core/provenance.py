"""
PROVENANCE.PY - Order-Independent Content Hashing

Every run carries a provenance record so identical inputs can be cached and
any output can be audited back to the prompt, guidance, findings and alerts
that produced it.

Hashing rules:
- Object keys are sorted recursively before serialization, so two dicts built
  in different key order hash identically.
- Pydantic models are dumped in JSON mode first.
- Finding and alert collections are sorted by id before hashing.
- Any value change changes the hash.
"""

import hashlib
import json
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from models.alert import Alert
from models.finding import Finding, sort_findings
from models.provenance import ProvenanceRecord

HASH_LENGTH = 12


def hash_content(content: str) -> str:
    """sha256 hex digest prefix of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def canonicalize(obj: Any) -> Any:
    """Recursively convert to plain JSON types with dict keys sorted."""
    if isinstance(obj, BaseModel):
        return canonicalize(obj.model_dump(mode="json"))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Mapping):
        return {str(k): canonicalize(obj[k]) for k in sorted(obj, key=str)}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted((canonicalize(v) for v in obj), key=lambda v: json.dumps(v, sort_keys=True))
    return obj


def hash_object(obj: Any) -> str:
    """Hash any JSON-like object graph independent of key order."""
    serialized = json.dumps(canonicalize(obj), sort_keys=True, separators=(",", ":"), default=str)
    return hash_content(serialized)


def hash_findings(findings: Iterable[Finding]) -> str:
    return hash_object(sort_findings(findings))


def hash_alerts(alerts: Iterable[Alert]) -> str:
    return hash_object(sorted(alerts, key=lambda a: a.id))


def hash_guidance(guidance: Mapping[str, str]) -> Dict[str, str]:
    """Per-domain guidance document hashes."""
    return {domain: hash_content(text) for domain, text in sorted(guidance.items())}


def build_provenance(
    *,
    run_id: str,
    findings: List[Finding],
    alerts: List[Alert],
    data_version: str,
    data_timestamp: int,
    domains_invoked: List[str],
    domains_silent: List[str],
    llm_model: str,
    prompt: Optional[str] = None,
    guidance: Optional[Mapping[str, str]] = None,
    llm_temperature: Optional[float] = None,
) -> ProvenanceRecord:
    """Assemble the provenance record for a finished run."""
    return ProvenanceRecord(
        run_id=run_id,
        prompt_hash=hash_content(prompt) if prompt is not None else None,
        guidance_hashes=hash_guidance(guidance or {}),
        findings_hash=hash_findings(findings),
        alerts_hash=hash_alerts(alerts),
        data_version=data_version,
        data_timestamp=data_timestamp,
        domains_invoked=list(domains_invoked),
        domains_silent=list(domains_silent),
        llm_model=llm_model,
        llm_temperature=llm_temperature,
    )


def verify_provenance(
    record: ProvenanceRecord,
    *,
    findings: List[Finding],
    alerts: List[Alert],
    prompt: Optional[str] = None,
    guidance: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """
    Recompute hashes and return the names of fields that no longer match.

    An empty list means the record still describes these inputs and outputs.
    """
    mismatches = []

    if record.findings_hash != hash_findings(findings):
        mismatches.append("findings_hash")

    if record.alerts_hash != hash_alerts(alerts):
        mismatches.append("alerts_hash")

    expected_prompt = hash_content(prompt) if prompt is not None else None
    if record.prompt_hash != expected_prompt:
        mismatches.append("prompt_hash")

    if guidance is not None and record.guidance_hashes != hash_guidance(guidance):
        mismatches.append("guidance_hashes")

    return mismatches
