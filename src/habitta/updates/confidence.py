"""System confidence scoring from field-level provenance."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from ..models.authority import InstallSource
from ..models.provenance import FieldProvenance, SystemField

# How much each field contributes to "we know what this unit is"
FIELD_WEIGHTS: dict[SystemField, float] = {
    SystemField.BRAND: 0.25,
    SystemField.MODEL: 0.25,
    SystemField.MANUFACTURE_YEAR: 0.20,
    SystemField.SERIAL: 0.15,
    SystemField.CAPACITY_RATING: 0.10,
    SystemField.FUEL_TYPE: 0.05,
}

# Smallest confidence change allowed to trigger recompute side effects
MEANINGFUL_DELTA_THRESHOLD = 0.05

# Scores are rounded to 2 decimals, so differences carry float noise
_DELTA_EPSILON = 1e-9

ConfidenceLevel = Literal["low", "medium", "high"]


def calculate_system_confidence(provenance: Mapping[SystemField, FieldProvenance]) -> float:
    """Weighted confidence of a system record.

    Missing fields contribute zero. Result is clamped to [0, 1] and rounded
    to two decimals.
    """
    score = sum(
        weight * provenance[field].confidence
        for field, weight in FIELD_WEIGHTS.items()
        if field in provenance
    )
    return round(max(0.0, min(1.0, score)), 2)


def is_meaningful_delta(delta: float) -> bool:
    """Whether a confidence change justifies downstream recompute.

    Guards mode transitions and cache invalidation against oscillating on
    trivial updates.
    """
    return abs(delta) + _DELTA_EPSILON >= MEANINGFUL_DELTA_THRESHOLD


def confidence_level(score: float) -> ConfidenceLevel:
    """Bucket a confidence score for display."""
    if score >= 0.75:
        return "high"
    if score >= 0.40:
        return "medium"
    return "low"


# Install-date confidence starts from who reported the year
INSTALL_BASE_SCORES: dict[InstallSource, float] = {
    InstallSource.INFERRED: 0.30,
    InstallSource.USER: 0.60,
    InstallSource.INSPECTION: 0.75,
    InstallSource.PERMIT: 0.85,
}

INSTALL_MODIFIERS = {
    "month": 0.05,
    "corroboration": 0.05,
    "brand": 0.03,
    "model": 0.05,
    "photo": 0.07,
}

INSTALL_PENALTIES = {
    "conflicting_dates": 0.10,
    "implausible_date": 0.15,
}


@dataclass(frozen=True)
class InstallConfidence:
    score: float
    level: ConfidenceLevel
    base: float
    modifiers: float
    penalties: float


def install_confidence_level(score: float) -> ConfidenceLevel:
    if score >= 0.80:
        return "high"
    if score >= 0.50:
        return "medium"
    return "low"


def score_install_confidence(
    install_source: InstallSource,
    *,
    has_month: bool = False,
    has_corroboration: bool = False,
    has_brand: bool = False,
    has_model: bool = False,
    has_photo: bool = False,
    has_conflicting_dates: bool = False,
    has_implausible_date: bool = False,
) -> InstallConfidence:
    """How much to trust an install year.

    Penalties can cancel modifiers but never push the score below the
    source's base score.
    """
    base = INSTALL_BASE_SCORES[install_source]
    flags = {
        "month": has_month,
        "corroboration": has_corroboration,
        "brand": has_brand,
        "model": has_model,
        "photo": has_photo,
    }
    modifiers = sum(INSTALL_MODIFIERS[name] for name, present in flags.items() if present)
    penalties = 0.0
    if has_conflicting_dates:
        penalties += INSTALL_PENALTIES["conflicting_dates"]
    if has_implausible_date:
        penalties += INSTALL_PENALTIES["implausible_date"]

    score = round(max(base, min(1.0, base + modifiers - penalties)), 2)
    return InstallConfidence(
        score=score,
        level=install_confidence_level(score),
        base=base,
        modifiers=round(modifiers, 2),
        penalties=round(penalties, 2),
    )
