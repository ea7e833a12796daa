"""Home Outlook: how much planning time a homeowner has.

A confidence-weighted, criticality-weighted average of the remaining life
across all systems in a home:

    raw = Σ(adjusted_remaining_life × weight) / Σ(weight)
    display = round_half_up(max(0, raw))

Systems without an install year or replacement window are excluded from the
average but still lower the assessment quality. Pure; no I/O.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from ..models.timeline import DataQuality, SystemTimelineEntry

# System criticality weights (internal, never shown to users)
CRITICALITY_WEIGHTS: dict[str, float] = {
    "hvac": 1.0,
    "roof": 0.9,
    "electrical": 0.8,
    "water_heater": 0.6,
    "plumbing": 0.6,
    "pool": 0.4,
    "solar": 0.4,
    "mini_split": 0.3,
}
DEFAULT_CRITICALITY_WEIGHT = 0.3

# Dampens overconfidence without dominating the estimate
CONFIDENCE_MULTIPLIERS: dict[DataQuality, float] = {
    DataQuality.HIGH: 1.0,
    DataQuality.MEDIUM: 0.9,
    DataQuality.LOW: 0.75,
}

ASSESSMENT_HIGH_THRESHOLD = 0.8
ASSESSMENT_MEDIUM_THRESHOLD = 0.4

CRITICAL_WEIGHT_THRESHOLD = 0.6
INSIDE_YEARS_THRESHOLD = 5
PLANNING_TIER_THRESHOLD = 0.8

MICRO_SUMMARY_SEPARATOR = " · "


class PlanningTier(str, Enum):
    PLANNING_CRITICAL = "planning-critical"
    ROUTINE_REPLACEMENT = "routine-replacement"


class LateLifeState(str, Enum):
    PLANNING_CRITICAL_LATE = "planning-critical-late"
    ROUTINE_LATE = "routine-late"
    NOT_LATE = "not-late"


PLANNING_TIER_LABELS: dict[PlanningTier, str] = {
    PlanningTier.PLANNING_CRITICAL: "major system",
    PlanningTier.ROUTINE_REPLACEMENT: "routine replacement",
}


class SystemContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_type: str
    estimated_age: int | None
    lifespan_mid: float = 0.0
    remaining_life: float = 0.0
    adjusted_remaining_life: float = 0.0
    confidence_multiplier: float
    criticality_weight: float
    contribution: float = 0.0


class HomeOutlookResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_years: int
    raw_years: float
    assessment_quality: DataQuality
    micro_summary: str
    systems_inside_5_years: int
    stable_systems_count: int
    eligible_count: int
    total_count: int
    contributions: list[SystemContribution] | None = None


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _current_year() -> int:
    return datetime.now(UTC).year


def criticality_weight(system_id: str) -> float:
    return CRITICALITY_WEIGHTS.get(system_id, DEFAULT_CRITICALITY_WEIGHT)


def get_system_planning_tier(system_id: str) -> PlanningTier:
    if criticality_weight(system_id) >= PLANNING_TIER_THRESHOLD:
        return PlanningTier.PLANNING_CRITICAL
    return PlanningTier.ROUTINE_REPLACEMENT


def _lifespan_bounds(system: SystemTimelineEntry) -> tuple[int, int] | None:
    if system.install_year is None or system.replacement_window is None:
        return None
    window = system.replacement_window
    return window.early_year - system.install_year, window.late_year - system.install_year


def get_remaining_years_for_system(
    system: SystemTimelineEntry, *, current_year: int | None = None
) -> int | None:
    """Whole years left before the window midpoint; None without data."""
    bounds = _lifespan_bounds(system)
    if bounds is None:
        return None
    age = (current_year or _current_year()) - system.install_year
    lifespan_mid = (bounds[0] + bounds[1]) / 2
    return max(0, round_half_up(lifespan_mid - age))


def get_lifecycle_percent(system: SystemTimelineEntry, *, current_year: int | None = None) -> float:
    """Share of the expected lifespan already used, 0-100."""
    bounds = _lifespan_bounds(system)
    if bounds is None:
        return 0.0
    age = (current_year or _current_year()) - system.install_year
    lifespan_mid = (bounds[0] + bounds[1]) / 2
    if lifespan_mid <= 0:
        return 100.0
    return min(100.0, max(0.0, age / lifespan_mid * 100))


def get_late_life_state(
    system: SystemTimelineEntry, *, current_year: int | None = None
) -> LateLifeState:
    remaining = get_remaining_years_for_system(system, current_year=current_year)
    if remaining is None or remaining > 0:
        return LateLifeState.NOT_LATE
    if get_system_planning_tier(system.system_id) is PlanningTier.PLANNING_CRITICAL:
        return LateLifeState.PLANNING_CRITICAL_LATE
    return LateLifeState.ROUTINE_LATE


def _assessment_quality(eligible_ids: set[str]) -> DataQuality:
    critical_types = {k for k, w in CRITICALITY_WEIGHTS.items() if w >= CRITICAL_WEIGHT_THRESHOLD}
    if not critical_types:
        return DataQuality.LOW
    ratio = len(eligible_ids & critical_types) / len(critical_types)
    if ratio >= ASSESSMENT_HIGH_THRESHOLD:
        return DataQuality.HIGH
    if ratio >= ASSESSMENT_MEDIUM_THRESHOLD:
        return DataQuality.MEDIUM
    return DataQuality.LOW


def _pluralize(count: int, label: str) -> str:
    return f"{count} {label}" + ("" if count == 1 else "s")


def build_micro_summary(
    systems: Sequence[SystemTimelineEntry], *, current_year: int | None = None
) -> str:
    """Tiered counts, e.g. "1 major system inside 5 yrs · 2 stable".

    Routine systems only count as due once they are at end of life; before
    that they are stable.
    """
    major_inside = 0
    routine_due = 0
    stable = 0

    for system in systems:
        remaining = get_remaining_years_for_system(system, current_year=current_year)
        if remaining is None:
            continue
        critical = get_system_planning_tier(system.system_id) is PlanningTier.PLANNING_CRITICAL
        if remaining <= 0:
            if critical:
                major_inside += 1
            else:
                routine_due += 1
        elif remaining <= INSIDE_YEARS_THRESHOLD and critical:
            major_inside += 1
        else:
            stable += 1

    parts: list[str] = []
    if major_inside:
        label = PLANNING_TIER_LABELS[PlanningTier.PLANNING_CRITICAL]
        parts.append(f"{_pluralize(major_inside, label)} inside {INSIDE_YEARS_THRESHOLD} yrs")
    if routine_due:
        label = PLANNING_TIER_LABELS[PlanningTier.ROUTINE_REPLACEMENT]
        parts.append(f"{_pluralize(routine_due, label)} due")
    if stable:
        parts.append(f"{stable} stable")
    return MICRO_SUMMARY_SEPARATOR.join(parts)


def compute_home_outlook(
    systems: Sequence[SystemTimelineEntry],
    *,
    current_year: int | None = None,
    debug: bool = False,
) -> HomeOutlookResult | None:
    """Aggregate a home's systems into one planning horizon.

    Returns None when no system has enough data. Zero is a real answer
    ("plan now"), so it is never used as a placeholder for "unknown".
    """
    if not systems:
        return None

    year = current_year or _current_year()
    contributions: list[SystemContribution] = []
    weighted_sum = 0.0
    weight_sum = 0.0
    inside_horizon = 0
    eligible_ids: set[str] = set()
    eligible_count = 0

    for system in systems:
        weight = criticality_weight(system.system_id)
        multiplier = CONFIDENCE_MULTIPLIERS.get(
            system.data_quality, CONFIDENCE_MULTIPLIERS[DataQuality.LOW]
        )
        age = year - system.install_year if system.install_year is not None else None
        bounds = _lifespan_bounds(system)

        if age is None or bounds is None:
            if debug:
                contributions.append(
                    SystemContribution(
                        system_type=system.system_id,
                        estimated_age=age,
                        confidence_multiplier=multiplier,
                        criticality_weight=weight,
                    )
                )
            continue

        eligible_count += 1
        eligible_ids.add(system.system_id)

        lifespan_min, lifespan_max = bounds
        lifespan_mid = (lifespan_min + lifespan_max) / 2
        remaining = max(0.0, min(lifespan_mid - age, lifespan_max))
        adjusted = remaining * multiplier
        contribution = adjusted * weight

        weighted_sum += contribution
        weight_sum += weight
        if adjusted <= INSIDE_YEARS_THRESHOLD:
            inside_horizon += 1

        if debug:
            contributions.append(
                SystemContribution(
                    system_type=system.system_id,
                    estimated_age=age,
                    lifespan_mid=lifespan_mid,
                    remaining_life=remaining,
                    adjusted_remaining_life=adjusted,
                    confidence_multiplier=multiplier,
                    criticality_weight=weight,
                    contribution=contribution,
                )
            )

    if eligible_count == 0 or weight_sum == 0:
        return None

    raw_years = max(0.0, weighted_sum / weight_sum)

    return HomeOutlookResult(
        display_years=round_half_up(raw_years),
        raw_years=raw_years,
        assessment_quality=_assessment_quality(eligible_ids),
        micro_summary=build_micro_summary(systems, current_year=year),
        systems_inside_5_years=inside_horizon,
        stable_systems_count=eligible_count - inside_horizon,
        eligible_count=eligible_count,
        total_count=len(systems),
        contributions=contributions if debug else None,
    )
