"""Survival parameters per climate zone.

Built-in profiles cover the zones the product has calibrated; a home's zone
is derived from its address with ``derive_climate_zone``. Any zone or
system can be overridden without a code change by pointing
``HABITTA_CLIMATE_PROFILES`` at a YAML file:

    zones:
      high_heat:
        systems:
          hvac:
            baseline_lifespan: 13
      coastal:
        label: Salt air exposure zone
        wear_factor: salt air and humidity
        systems:
          hvac:
            climate_multiplier: 0.9

YAML values are merged over the built-ins field by field.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import yaml

from ..exceptions import UnknownClimateZoneError, UnknownSystemKindError

DEFAULT_CLIMATE_ZONE = "high_heat"


@dataclass(frozen=True)
class SurvivalParameters:
    baseline_lifespan: float = 14  # South Florida realistic average (years)
    climate_multiplier: float = 0.85  # heat/humidity penalty
    maintenance_boost: float = 1.1  # extension for recent maintenance

    # Age inference when no install year or permit is known
    young_home_years: int = 15
    assumed_replacement_age: int = 7
    default_age: int = 8

    # Status thresholds on remaining years
    low_risk_above: float = 3
    moderate_risk_above: float = 1

    # Presentation gates
    planning_horizon: float = 3
    foreseeable_horizon: float = 5


@dataclass(frozen=True)
class ClimateProfile:
    zone: str
    label: str
    region: str = "other"
    systems: Mapping[str, SurvivalParameters] = field(default_factory=dict)
    # What the climate does to equipment, e.g. "salt air"; None for mild zones
    wear_factor: str | None = None

    def parameters_for(self, system_kind: str) -> SurvivalParameters:
        try:
            return self.systems[system_kind]
        except KeyError:
            raise UnknownSystemKindError(
                system_kind, f"no survival parameters for zone {self.zone!r}"
            ) from None


# Only hot-humid zones shorten HVAC life; elsewhere the baseline holds
_UNPENALIZED_HVAC = SurvivalParameters(climate_multiplier=1.0)

BUILTIN_PROFILES: dict[str, ClimateProfile] = {
    "high_heat": ClimateProfile(
        zone="high_heat",
        label="Miami-Dade",
        region="south_florida",
        systems={"hvac": SurvivalParameters()},
        wear_factor="heat and humidity",
    ),
    "coastal": ClimateProfile(
        zone="coastal",
        label="Coastal",
        region="coastal",
        systems={"hvac": _UNPENALIZED_HVAC},
        wear_factor="salt air",
    ),
    "freeze_thaw": ClimateProfile(
        zone="freeze_thaw",
        label="Freeze-thaw",
        region="northern",
        systems={"hvac": _UNPENALIZED_HVAC},
        wear_factor="temperature swings",
    ),
    "moderate": ClimateProfile(
        zone="moderate",
        label="Moderate climate",
        systems={"hvac": _UNPENALIZED_HVAC},
    ),
}

_HIGH_HEAT_PLACES = (
    "miami",
    "fort lauderdale",
    "west palm",
    "tampa",
    "orlando",
    "phoenix",
    "tucson",
    "las vegas",
    "houston",
    "san antonio",
)
_HIGH_HEAT_STATES = frozenset({"florida", "fl", "arizona", "az"})
_COASTAL_PLACES = ("beach", "coast", "key ", "island", "santa monica", "san diego", "malibu")
_FREEZE_THAW_PLACES = (
    "boston",
    "chicago",
    "minneapolis",
    "denver",
    "detroit",
    "milwaukee",
    "buffalo",
    "cleveland",
    "pittsburgh",
)
_FREEZE_THAW_STATES = frozenset(
    {"mn", "wi", "mi", "nd", "sd", "mt", "wy", "vt", "nh", "me", "minnesota", "wisconsin", "michigan"}
)

_PARAMETER_NAMES = frozenset(f.name for f in fields(SurvivalParameters))


def _merge_parameters(
    base: SurvivalParameters | None, overrides: Mapping[str, object], where: str
) -> SurvivalParameters:
    unknown = set(overrides) - _PARAMETER_NAMES
    if unknown:
        raise ValueError(f"Unknown survival parameter(s) in {where}: {sorted(unknown)}")
    merged = asdict(base or SurvivalParameters())
    merged.update(overrides)
    return SurvivalParameters(**merged)


def _merge_profiles(
    base: Mapping[str, ClimateProfile], data: Mapping
) -> dict[str, ClimateProfile]:
    profiles = dict(base)
    for zone, zone_data in (data.get("zones") or {}).items():
        zone_data = zone_data or {}
        current = profiles.get(zone)
        systems = dict(current.systems) if current else {}
        for kind, overrides in (zone_data.get("systems") or {}).items():
            systems[kind] = _merge_parameters(
                systems.get(kind), overrides or {}, f"{zone}.{kind}"
            )
        profiles[zone] = ClimateProfile(
            zone=zone,
            label=zone_data.get("label", current.label if current else zone),
            region=zone_data.get("region", current.region if current else "other"),
            systems=systems,
            wear_factor=zone_data.get("wear_factor", current.wear_factor if current else None),
        )
    return profiles


def load_climate_profiles(path: Path | str | None = None) -> dict[str, ClimateProfile]:
    """Built-in profiles, merged with a YAML override file when one is given.

    Without ``path``, ``HABITTA_CLIMATE_PROFILES`` is consulted.
    """
    path = path or os.getenv("HABITTA_CLIMATE_PROFILES")
    if not path:
        return dict(BUILTIN_PROFILES)

    with open(Path(path)) as f:
        data = yaml.safe_load(f) or {}
    return _merge_profiles(BUILTIN_PROFILES, data)


def default_climate_zone() -> str:
    return os.getenv("HABITTA_CLIMATE_ZONE", DEFAULT_CLIMATE_ZONE)


def derive_climate_zone(
    state: str | None = None, city: str | None = None, lat: float | None = None
) -> str:
    """Climate zone for a home from its address and latitude.

    Checked in order: high heat, coastal, freeze-thaw. Anything else is
    moderate. Places match as substrings of "city state", so "Miami Beach"
    is high heat rather than coastal.
    """
    location = f"{city or ''} {state or ''}".lower()
    state_key = (state or "").strip().lower()

    if (
        any(place in location for place in _HIGH_HEAT_PLACES)
        or state_key in _HIGH_HEAT_STATES
        or (lat is not None and lat < 28)
    ):
        return "high_heat"
    if any(place in location for place in _COASTAL_PLACES):
        return "coastal"
    if (
        any(place in location for place in _FREEZE_THAW_PLACES)
        or state_key in _FREEZE_THAW_STATES
        or (lat is not None and lat > 42)
    ):
        return "freeze_thaw"
    return "moderate"


def get_climate_profile(
    zone: str | None = None, profiles: Mapping[str, ClimateProfile] | None = None
) -> ClimateProfile:
    """Look up a climate profile.

    Raises:
        UnknownClimateZoneError: if no profile is configured for the zone.
    """
    zone = zone or default_climate_zone()
    profiles = profiles if profiles is not None else load_climate_profiles()
    try:
        return profiles[zone]
    except KeyError:
        raise UnknownClimateZoneError(zone) from None


def get_survival_parameters(
    system_kind: str = "hvac",
    zone: str | None = None,
    profiles: Mapping[str, ClimateProfile] | None = None,
) -> SurvivalParameters:
    return get_climate_profile(zone, profiles).parameters_for(system_kind)
