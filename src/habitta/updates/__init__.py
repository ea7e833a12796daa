"""System update authority: resolution, confidence, and canonical sync."""

from .apply import AuthorityOutcome, SystemUpdateResult, apply_system_update
from .canonical import (
    CANONICAL_SYSTEMS,
    SyncReason,
    SyncResult,
    infer_install_year,
    is_canonical_system,
    normalize_system_key,
    plan_canonical_sync,
    plan_replacement_reset,
    reset_canonical_for_replacement,
    sync_to_canonical,
)
from .confidence import (
    FIELD_WEIGHTS,
    MEANINGFUL_DELTA_THRESHOLD,
    calculate_system_confidence,
    confidence_level,
    is_meaningful_delta,
    score_install_confidence,
)
from .resolver import ResolveResult, resolve_field_updates
from .summary import build_chat_summary

__all__ = [
    "FIELD_WEIGHTS",
    "MEANINGFUL_DELTA_THRESHOLD",
    "calculate_system_confidence",
    "confidence_level",
    "is_meaningful_delta",
    "score_install_confidence",
    "ResolveResult",
    "resolve_field_updates",
    "CANONICAL_SYSTEMS",
    "SyncReason",
    "SyncResult",
    "infer_install_year",
    "is_canonical_system",
    "normalize_system_key",
    "plan_canonical_sync",
    "plan_replacement_reset",
    "reset_canonical_for_replacement",
    "sync_to_canonical",
    "build_chat_summary",
    "AuthorityOutcome",
    "SystemUpdateResult",
    "apply_system_update",
]
