"""
Centralized Log Sanitizer
=========================

Redacts sensitive data before it reaches a log line:
- LLM API keys and bearer tokens
- Authorization headers
- Environment variable values that hold secrets

Usage:
    from core.log_sanitizer import sanitize, sanitize_headers, safe_log_response

    safe_headers = sanitize_headers(request_headers)
    safe_text = sanitize(response_body)
"""

import os
import re
from typing import Any, Dict, Optional

# Headers that should always be redacted
SENSITIVE_HEADERS = frozenset({
    "authorization",
    "x-api-key",
    "api-key",
    "apikey",
    "bearer",
    "cookie",
    "set-cookie",
})

# Environment variable names that contain secrets (values should never be logged)
SENSITIVE_ENV_VARS = frozenset({
    "LLM_API_KEY",
    "OPENAI_API_KEY",
})

# Redaction placeholder
REDACTED = "[REDACTED]"

# Regex patterns for token-like strings
TOKEN_PATTERNS = [
    # OpenAI-style secret keys
    re.compile(r'\bsk-[A-Za-z0-9\-_]{16,}\b'),
    # Bearer tokens
    re.compile(r'Bearer\s+[A-Za-z0-9\-_\.]+', re.IGNORECASE),
    # Long opaque keys
    re.compile(r'\b[A-Za-z0-9]{32,}\b'),
]


def _is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    key_lower = key.lower().replace("-", "_").replace(" ", "_")
    return (
        key_lower.replace("_", "-") in SENSITIVE_HEADERS
        or key_lower.endswith("api_key")
        or key_lower.endswith("_token")
        or key_lower in ("token", "secret", "password", "authorization")
        or "secret" in key_lower
        or "bearer" in key_lower
    )


def _get_env_values_to_redact() -> set:
    """Get current values of sensitive environment variables."""
    values = set()
    for var_name in SENSITIVE_ENV_VARS:
        value = os.environ.get(var_name, "")
        if value and len(value) >= 8:  # Only redact non-trivial values
            values.add(value)
    return values


def sanitize_headers(headers: Dict[str, Any]) -> Dict[str, str]:
    """Return a copy of headers with sensitive values redacted."""
    if not headers:
        return {}

    sanitized = {}
    for key, value in headers.items():
        key_str = str(key)
        if _is_sensitive_key(key_str):
            sanitized[key_str] = REDACTED
        else:
            sanitized[key_str] = str(value)

    return sanitized


def sanitize(text: str, redact_tokens: bool = True) -> str:
    """
    Sanitize arbitrary text by redacting sensitive patterns.

    Args:
        text: Text that may contain sensitive data
        redact_tokens: Whether to redact token-like strings (may have false positives)

    Returns:
        Text with sensitive data redacted
    """
    if not text:
        return text

    result = text

    for value in _get_env_values_to_redact():
        if value in result:
            result = result.replace(value, REDACTED)

    if redact_tokens:
        for pattern in TOKEN_PATTERNS:
            result = pattern.sub(REDACTED, result)

    return result


def safe_log_response(
    status_code: int,
    url: str,
    response_text: Optional[str] = None,
    max_length: int = 200,
) -> str:
    """
    Create a safe log string for an HTTP response.

    Args:
        status_code: HTTP status code
        url: Request URL
        response_text: Response body text (truncated and sanitized)
        max_length: Maximum length of response text to include
    """
    parts = [f"HTTP {status_code} from {url}"]

    if response_text:
        truncated = response_text[:max_length]
        if len(response_text) > max_length:
            truncated += "..."
        parts.append(f"response={sanitize(truncated, redact_tokens=False)}")

    return " ".join(parts)
