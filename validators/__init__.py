"""
validators - Integrity checks run after alert assembly
"""

from .alert_integrity import (
    CONFIDENCE_TOLERANCE,
    validate_alert_integrity,
    validate_alerts,
)

__all__ = [
    "CONFIDENCE_TOLERANCE",
    "validate_alert_integrity",
    "validate_alerts",
]
