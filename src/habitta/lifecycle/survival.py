"""Survival core: pure lifecycle math for a single system.

The core struct is the only input to presentation. Nothing downstream may
state a fact about the system that is not derivable from it.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..models.install import is_plausible_install_year
from .config import SurvivalParameters, get_survival_parameters


class SurvivalStatus(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class AgeSource(str, Enum):
    """Where the age used for the survival estimate came from."""

    RECORDED = "recorded"
    PERMIT_REPLACEMENT = "permit_replacement"
    PERMIT_INSTALL = "permit_install"
    INFERRED = "inferred"
    DEFAULT = "default"

    @property
    def is_permit(self) -> bool:
        return self in (AgeSource.PERMIT_REPLACEMENT, AgeSource.PERMIT_INSTALL)


class Permit(BaseModel):
    id: str
    date_issued: date | None = None
    description: str | None = None
    system_tags: list[str] = Field(default_factory=list)
    permit_type: str | None = None


class SurvivalCore(BaseModel):
    """Derived survival metrics. Never persisted."""

    model_config = ConfigDict(frozen=True)

    age_years: int
    remaining_years: float
    adjusted_lifespan_years: float
    status: SurvivalStatus
    has_recent_maintenance: bool
    install_source: AgeSource


# Description keywords that tie a permit to a system kind
PERMIT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "hvac": ("hvac", "air condition", "a/c"),
    "roof": ("roof", "reroof", "shingle"),
    "water_heater": ("water heater", "water_heater", "hot water"),
}

REPLACEMENT_KEYWORDS = ("replace", "change out", "upgrade", "new unit", "changeout")
INSTALL_KEYWORDS = ("install", "new")


def _current_year() -> int:
    return datetime.now(UTC).year


def _matches_kind(permit: Permit, system_kind: str) -> bool:
    if system_kind in permit.system_tags:
        return True
    description = (permit.description or "").lower()
    keywords = PERMIT_KEYWORDS.get(system_kind, (system_kind.replace("_", " "),))
    return any(kw in description for kw in keywords)


def _find_permit(
    permits: Sequence[Permit], system_kind: str, keywords: tuple[str, ...]
) -> Permit | None:
    for permit in permits:
        if not permit.date_issued or not _matches_kind(permit, system_kind):
            continue
        description = (permit.description or "").lower()
        if any(kw in description for kw in keywords):
            return permit
    return None


def determine_system_age(
    install_year: int | None,
    home_year_built: int | None,
    permits: Sequence[Permit] = (),
    *,
    system_kind: str = "hvac",
    params: SurvivalParameters | None = None,
    current_year: int | None = None,
) -> tuple[int, AgeSource]:
    """Best available age for a system.

    Priority: recorded install year > replacement permit > install permit >
    home age > default. A young home is assumed to still have its original
    system; an older one is assumed to have replaced it some years ago. A
    recorded year in the future or before the home was built is ignored.
    """
    params = params or SurvivalParameters()
    year = current_year or _current_year()

    if install_year and is_plausible_install_year(install_year, home_year_built, current_year=year):
        return max(0, year - install_year), AgeSource.RECORDED

    replacement = _find_permit(permits, system_kind, REPLACEMENT_KEYWORDS)
    if replacement is not None:
        return max(0, year - replacement.date_issued.year), AgeSource.PERMIT_REPLACEMENT

    install = _find_permit(permits, system_kind, INSTALL_KEYWORDS)
    if install is not None:
        return max(0, year - install.date_issued.year), AgeSource.PERMIT_INSTALL

    if home_year_built:
        home_age = max(0, year - home_year_built)
        if home_age < params.young_home_years:
            return home_age, AgeSource.INFERRED
        return params.assumed_replacement_age, AgeSource.INFERRED

    return params.default_age, AgeSource.DEFAULT


def status_for_remaining(remaining_years: float, params: SurvivalParameters) -> SurvivalStatus:
    if remaining_years > params.low_risk_above:
        return SurvivalStatus.LOW
    if remaining_years > params.moderate_risk_above:
        return SurvivalStatus.MODERATE
    return SurvivalStatus.HIGH


def calculate_survival_core(
    install_year: int | None,
    home_year_built: int | None,
    has_recent_maintenance: bool,
    permits: Sequence[Permit] = (),
    *,
    system_kind: str = "hvac",
    params: SurvivalParameters | None = None,
    current_year: int | None = None,
) -> SurvivalCore:
    """Compute survival metrics for one system.

    Without explicit ``params`` the parameters come from the configured
    climate zone, which raises UnknownSystemKindError for a kind the zone
    does not cover.
    """
    params = params or get_survival_parameters(system_kind)
    age_years, source = determine_system_age(
        install_year,
        home_year_built,
        permits,
        system_kind=system_kind,
        params=params,
        current_year=current_year,
    )

    maintenance_multiplier = params.maintenance_boost if has_recent_maintenance else 1.0
    adjusted = params.baseline_lifespan * params.climate_multiplier * maintenance_multiplier
    remaining = max(0.0, adjusted - age_years)

    return SurvivalCore(
        age_years=age_years,
        remaining_years=remaining,
        adjusted_lifespan_years=adjusted,
        status=status_for_remaining(remaining, params),
        has_recent_maintenance=has_recent_maintenance,
        install_source=source,
    )
