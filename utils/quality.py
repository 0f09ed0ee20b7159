"""
Duration-based audio quality optimization.

Long recordings (audiobooks, podcasts) gain nothing from a high bitrate, so
the requested tier is lowered for them. Tiers are only ever lowered.
"""

from dataclasses import dataclass
from typing import Optional

from models.audio import AudioQuality

# (minimum hours, target tier, explanation), longest first
DURATION_RULES = [
    (6.0, AudioQuality.ULTRALOW, "48kbps mono is optimal for very long audiobooks"),
    (3.0, AudioQuality.LOW, "64kbps is optimal for long audiobooks/podcasts"),
    (1.5, AudioQuality.MEDIUM, "good balance of quality/size"),
]

QUALITY_LABELS = {
    AudioQuality.BEST: "Best",
    AudioQuality.HIGH: "High",
    AudioQuality.MEDIUM: "Medium",
    AudioQuality.LOW: "Low",
    AudioQuality.ULTRALOW: "Ultra-Low",
}


@dataclass(frozen=True)
class QualityDecision:
    """Effective quality for a request."""
    quality: AudioQuality
    adjusted: bool
    reason: Optional[str] = None


def optimize_quality_for_duration(requested: AudioQuality, duration_seconds: int) -> QualityDecision:
    """
    Pick the effective quality tier for a recording of the given length.

    The first rule whose duration threshold is reached decides; a tier
    already at or below that rule's target passes through unchanged.
    """
    hours = duration_seconds / 3600

    for min_hours, target, explanation in DURATION_RULES:
        if hours < min_hours:
            continue
        if requested.is_at_or_below(target):
            break
        return QualityDecision(
            quality=target,
            adjusted=True,
            reason=(
                f"Auto-adjusted to {QUALITY_LABELS[target]} quality for "
                f"{hours:.1f}h duration ({explanation})"
            )
        )

    return QualityDecision(quality=requested, adjusted=False)
