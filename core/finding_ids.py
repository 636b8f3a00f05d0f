"""
FINDING_IDS.PY - Deterministic Finding Identity

Finding ids feed provenance hashes and downstream caching, so they are
composed explicitly from their parts:

    {domain}-{subject_slug}-{discriminator}-{time_bucket}

Same inputs always give the same id. Timestamps are floored to the hour so a
re-pull of the same snapshot a few minutes later keeps the same ids.
"""

import re
from typing import Union

TIME_BUCKET_SECONDS = 3600

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lowercase, collapse any run of non-alphanumerics to '-', trim dashes."""
    slug = _NON_ALNUM.sub("-", str(value).lower()).strip("-")
    return slug or "unknown"


def time_bucket(timestamp: Union[int, float], bucket_seconds: int = TIME_BUCKET_SECONDS) -> int:
    """Floor an epoch-seconds timestamp to its bucket start."""
    ts = int(timestamp)
    return ts - (ts % bucket_seconds)


def compose_finding_id(
    domain: str,
    subject: str,
    discriminator: str,
    timestamp: Union[int, float],
) -> str:
    """
    Compose a stable finding id.

    Args:
        domain: Rule domain ("hb", "pace", ...)
        subject: Player, team or matchup identity (normalized here)
        discriminator: Check-specific suffix ("volume", "td", ...)
        timestamp: Data snapshot timestamp (epoch seconds)
    """
    return "-".join([
        slugify(domain),
        slugify(subject),
        slugify(discriminator),
        str(time_bucket(timestamp)),
    ])
