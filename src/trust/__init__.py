"""Reporter trust engine.

This package provides:
- Trust score computation from reporter activity
- Tier classification for display and filtering
- Audited administration (override, recalculation, flagging)
- Console listing helpers (search, filters, stats)
"""

from src.trust.administration import AUTO_RECALCULATION_REASON, TrustAdministration
from src.trust.classifier import classify, score_to_tier, tier_bounds
from src.trust.errors import (
    InvalidArgumentError,
    NotFoundError,
    StoreConflictError,
    StoreError,
    TrustEngineError,
)
from src.trust.score import compute_breakdown, compute_score

__all__ = [
    "AUTO_RECALCULATION_REASON",
    "InvalidArgumentError",
    "NotFoundError",
    "StoreConflictError",
    "StoreError",
    "TrustAdministration",
    "TrustEngineError",
    "classify",
    "compute_breakdown",
    "compute_score",
    "score_to_tier",
    "tier_bounds",
]
