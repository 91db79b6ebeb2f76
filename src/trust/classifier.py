"""Trust tier classification for display and filtering."""

from __future__ import annotations

from src.models import TrustClassification, TrustTier

TIER_THRESHOLDS: dict[TrustTier, int] = {
    TrustTier.NEW: 0,
    TrustTier.BASIC: 20,
    TrustTier.RELIABLE: 50,
    TrustTier.TRUSTED: 80,
    TrustTier.VERIFIED: 100,
}

TIER_LABELS: dict[TrustTier, str] = {
    TrustTier.NEW: "New",
    TrustTier.BASIC: "Basic",
    TrustTier.RELIABLE: "Reliable",
    TrustTier.TRUSTED: "Trusted",
    TrustTier.VERIFIED: "Verified",
}

TIER_COLORS: dict[TrustTier, str] = {
    TrustTier.NEW: "#757575",  # gray
    TrustTier.BASIC: "#fb8c00",  # orange
    TrustTier.RELIABLE: "#0288d1",  # blue
    TrustTier.TRUSTED: "#2e7d32",  # green
    TrustTier.VERIFIED: "#8e24aa",  # purple
}

# Highest threshold first
_TIERS_DESCENDING = sorted(TIER_THRESHOLDS, key=TIER_THRESHOLDS.__getitem__, reverse=True)


def score_to_tier(score: float) -> TrustTier:
    for tier in _TIERS_DESCENDING:
        if score >= TIER_THRESHOLDS[tier]:
            return tier
    return TrustTier.NEW


def classify(score: float) -> TrustClassification:
    """Return the tier, label and display color for a trust score."""
    tier = score_to_tier(score)
    return TrustClassification(tier=tier, label=TIER_LABELS[tier], color=TIER_COLORS[tier])


def tier_bounds(tier: TrustTier) -> tuple[int, int]:
    """Score range of a tier as (inclusive minimum, exclusive maximum)."""
    lower = TIER_THRESHOLDS[tier]
    higher = [t for t in TIER_THRESHOLDS.values() if t > lower]
    upper = min(higher) if higher else TIER_THRESHOLDS[TrustTier.VERIFIED] + 1
    return lower, upper


def tier_label(tier: TrustTier) -> str:
    return TIER_LABELS[tier]
