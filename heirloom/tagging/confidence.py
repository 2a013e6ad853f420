"""Advisory confidence tiers for triaging suggestions."""

from typing import Optional

from heirloom.config import ConfidenceThresholds, get_config
from heirloom.core.models import ConfidenceTier


def confidence_tier(
    confidence: float, thresholds: Optional[ConfidenceThresholds] = None
) -> ConfidenceTier:
    """
    Map a score to a display tier.

    Defaults: >= 0.90 high, >= 0.70 medium, otherwise low. Display only;
    nothing is auto-accepted or auto-rejected on the strength of a tier.
    """
    thresholds = thresholds or get_config().confidence
    if confidence >= thresholds.high:
        return ConfidenceTier.HIGH
    if confidence >= thresholds.medium:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW
