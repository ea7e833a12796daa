"""Presentation builder for survival predictions.

All copy is produced here from a ``SurvivalCore``; the UI and chat layers
render it as-is and must not add their own.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .config import ClimateProfile, SurvivalParameters, get_climate_profile
from .survival import AgeSource, Permit, SurvivalCore, SurvivalStatus, calculate_survival_core

ForecastState = Literal["reassuring", "watch", "urgent"]
Season = Literal["spring", "summer", "fall", "winter"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class PredictionHeader(_Frozen):
    name: str
    installed_line: str
    status_label: str


class PredictionForecast(_Frozen):
    headline: str = "What to Expect"
    summary: str
    reassurance: str | None = None
    state: ForecastState
    next_review: str


class PredictionWhy(_Frozen):
    bullets: list[str]
    risk_context: list[str] = Field(default_factory=list)
    source_label: str | None = None


class PredictionFactors(_Frozen):
    helps: list[str] = Field(default_factory=list)
    hurts: list[str] = Field(default_factory=list)


class PredictionAction(_Frozen):
    title: str
    meta_line: str
    priority: Literal["standard", "high"] = "standard"
    diy_or_pro: Literal["DIY", "PRO", "Either"]
    chatdiy_slug: str


class PredictionPlanning(_Frozen):
    text: str


class OptimizationSignalFlags(_Frozen):
    permit_verified: bool
    install_source: AgeSource
    maintenance_state: Literal["good", "unknown", "needs_attention"]
    has_limited_history: bool
    climate_region: str
    usage_state: Literal["typical", "heavy", "unknown"] = "unknown"


class PlanningEligibility(_Frozen):
    remaining_years: float
    is_foreseeable: bool


class TipsContext(_Frozen):
    season: Season
    climate_region: str


class OptimizationSignals(_Frozen):
    """Semantic signals only; copy for them lives in the UI layer."""

    confidence_state: Literal["low", "medium", "high"]
    signals: OptimizationSignalFlags
    planning_eligibility: PlanningEligibility
    tips_context: TipsContext


class SystemPrediction(_Frozen):
    system_key: str
    status: SurvivalStatus
    header: PredictionHeader
    forecast: PredictionForecast
    why: PredictionWhy
    factors: PredictionFactors
    actions: list[PredictionAction] = Field(default_factory=list, max_length=2)
    planning: PredictionPlanning | None = None
    optimization: OptimizationSignals


@dataclass(frozen=True)
class SystemCopy:
    name: str
    actions: tuple[PredictionAction, ...]
    planning_text: str


SYSTEM_COPY: dict[str, SystemCopy] = {
    "hvac": SystemCopy(
        name="HVAC",
        actions=(
            PredictionAction(
                title="Replace HVAC filter",
                meta_line="$20 · 30 min DIY",
                diy_or_pro="DIY",
                chatdiy_slug="hvac-filter-replacement",
            ),
            PredictionAction(
                title="Seasonal HVAC inspection",
                meta_line="$80–$120 · Schedule PRO",
                diy_or_pro="PRO",
                chatdiy_slug="hvac-seasonal-inspection",
            ),
        ),
        planning_text=(
            "If replacement is needed, typical costs range from $6,000–$12,000 "
            "depending on size and efficiency."
        ),
    ),
}

STATUS_LABELS: dict[SurvivalStatus, str] = {
    SurvivalStatus.LOW: "Low Risk",
    SurvivalStatus.MODERATE: "Moderate Risk",
    SurvivalStatus.HIGH: "High Risk",
}

# Age past which component fatigue is called out
AGING_THRESHOLD_YEARS = 10


def _system_copy(system_kind: str) -> SystemCopy:
    if system_kind in SYSTEM_COPY:
        return SYSTEM_COPY[system_kind]
    name = system_kind.replace("_", " ").title()
    return SystemCopy(
        name=name,
        actions=(
            PredictionAction(
                title=f"Schedule a {name.lower()} inspection",
                meta_line="Schedule PRO",
                diy_or_pro="PRO",
                chatdiy_slug=f"{system_kind.replace('_', '-')}-inspection",
            ),
        ),
        planning_text="If replacement is needed, get quotes from licensed contractors early.",
    )


def season_for(day: date) -> Season:
    if day.month in (3, 4, 5):
        return "spring"
    if day.month in (6, 7, 8):
        return "summer"
    if day.month in (9, 10, 11):
        return "fall"
    return "winter"


def _forecast(status: SurvivalStatus, today: date) -> PredictionForecast:
    next_review = (
        "Next review after summer season"
        if 4 <= today.month <= 9
        else "Next review after winter season"
    )
    if status is SurvivalStatus.LOW:
        return PredictionForecast(
            summary="Low risk over the next year.",
            reassurance="No urgent action is required right now.",
            state="reassuring",
            next_review=next_review,
        )
    if status is SurvivalStatus.MODERATE:
        return PredictionForecast(
            summary="Likely to need attention in 6–12 months.",
            reassurance="This is a watch item, not an emergency.",
            state="watch",
            next_review=next_review,
        )
    return PredictionForecast(
        summary="Likely to need attention within the next 3–6 months.",
        state="urgent",
        next_review="Review recommended soon",
    )


def _installed_line(core: SurvivalCore, install_year: int | None, today: date) -> str:
    year = install_year or today.year - core.age_years
    if core.install_source.is_permit:
        note = "(based on permit)"
    elif core.install_source is AgeSource.RECORDED:
        note = "(from your records)"
    else:
        note = "(estimated)"
    return f"Installed ~{year} {note}"


def _confidence_state(source: AgeSource) -> Literal["low", "medium", "high"]:
    if source is AgeSource.RECORDED or source.is_permit:
        return "high"
    if source is AgeSource.INFERRED:
        return "medium"
    return "low"


def build_system_prediction(
    core: SurvivalCore,
    *,
    system_kind: str = "hvac",
    install_year: int | None = None,
    params: SurvivalParameters | None = None,
    profile: ClimateProfile | None = None,
    today: date | None = None,
) -> SystemPrediction:
    """Turn a survival core into the render-only prediction struct.

    Protective bullets explain stability and are safe for summary cards;
    risk context is for the system drill-down only. Planning copy appears
    only when the remaining life is inside the planning horizon.
    """
    profile = profile or get_climate_profile()
    params = params or profile.parameters_for(system_kind)
    today = today or datetime.now(UTC).date()
    copy = _system_copy(system_kind)
    permit_verified = core.install_source.is_permit

    bullets: list[str] = []
    if core.remaining_years > params.low_risk_above:
        bullets.append(f"{copy.name} system age is well within expected lifespan")
    if core.has_recent_maintenance:
        bullets.append("Recent maintenance activity is extending system life")
    if permit_verified:
        bullets.append("Install date verified through permit records")
    bullets.append("Local climate conditions are continuously monitored")

    # Only a zone that actually shortens lifespan is named as a risk
    climate_wear = profile.wear_factor is not None and params.climate_multiplier < 1

    risk_context = []
    if climate_wear:
        risk_context.append(f"{profile.label} climate ({profile.wear_factor}) increases wear over time")
    if core.age_years > AGING_THRESHOLD_YEARS:
        risk_context.append("System age increases likelihood of component fatigue")
    if core.remaining_years <= params.planning_horizon:
        risk_context.append("System age is approaching typical replacement range")

    helps = ["Recent maintenance logged"] if core.has_recent_maintenance else []
    hurts = [f"{profile.label} climate stress"] if climate_wear else []
    if core.age_years > AGING_THRESHOLD_YEARS:
        hurts.append(f"System age > {AGING_THRESHOLD_YEARS} years")

    actions: list[PredictionAction] = []
    if core.status is not SurvivalStatus.LOW:
        for action in copy.actions[:2]:
            if action.diy_or_pro == "PRO" and core.status is SurvivalStatus.HIGH:
                action = action.model_copy(update={"priority": "high"})
            actions.append(action)

    planning = None
    if core.remaining_years <= params.planning_horizon:
        planning = PredictionPlanning(text=copy.planning_text)

    optimization = OptimizationSignals(
        confidence_state=_confidence_state(core.install_source),
        signals=OptimizationSignalFlags(
            permit_verified=permit_verified,
            install_source=core.install_source,
            maintenance_state="good" if core.has_recent_maintenance else "unknown",
            has_limited_history=core.install_source in (AgeSource.INFERRED, AgeSource.DEFAULT),
            climate_region=profile.region,
        ),
        planning_eligibility=PlanningEligibility(
            remaining_years=core.remaining_years,
            is_foreseeable=core.remaining_years <= params.foreseeable_horizon,
        ),
        tips_context=TipsContext(season=season_for(today), climate_region=profile.region),
    )

    return SystemPrediction(
        system_key=system_kind,
        status=core.status,
        header=PredictionHeader(
            name=copy.name,
            installed_line=_installed_line(core, install_year, today),
            status_label=STATUS_LABELS[core.status],
        ),
        forecast=_forecast(core.status, today),
        why=PredictionWhy(
            bullets=bullets,
            risk_context=risk_context,
            source_label="Based on permit records" if permit_verified else None,
        ),
        factors=PredictionFactors(helps=helps, hurts=hurts),
        actions=actions,
        planning=planning,
        optimization=optimization,
    )


def get_system_prediction(
    install_year: int | None,
    home_year_built: int | None,
    has_recent_maintenance: bool,
    permits: Sequence[Permit] = (),
    *,
    system_kind: str = "hvac",
    zone: str | None = None,
    profiles: Mapping[str, ClimateProfile] | None = None,
    today: date | None = None,
) -> SystemPrediction:
    """Core calculation and presentation in one call."""
    today = today or datetime.now(UTC).date()
    profile = get_climate_profile(zone, profiles)
    params = profile.parameters_for(system_kind)
    core = calculate_survival_core(
        install_year,
        home_year_built,
        has_recent_maintenance,
        permits,
        system_kind=system_kind,
        params=params,
        current_year=today.year,
    )
    return build_system_prediction(
        core,
        system_kind=system_kind,
        install_year=install_year,
        params=params,
        profile=profile,
        today=today,
    )
