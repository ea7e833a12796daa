"""Lifecycle prediction: survival, presentation, home outlook, state reset."""

from .config import (
    BUILTIN_PROFILES,
    ClimateProfile,
    SurvivalParameters,
    derive_climate_zone,
    get_climate_profile,
    get_survival_parameters,
    load_climate_profiles,
)
from .outlook import (
    CRITICALITY_WEIGHTS,
    HomeOutlookResult,
    compute_home_outlook,
    get_late_life_state,
    get_lifecycle_percent,
    get_remaining_years_for_system,
    get_system_planning_tier,
)
from .prediction import SystemPrediction, build_system_prediction, get_system_prediction
from .state_reset import (
    EvidenceType,
    apply_decision,
    apply_new_evidence,
    build_decision_event,
    record_decision,
)
from .survival import (
    AgeSource,
    Permit,
    SurvivalCore,
    SurvivalStatus,
    calculate_survival_core,
    determine_system_age,
)

__all__ = [
    "BUILTIN_PROFILES",
    "ClimateProfile",
    "SurvivalParameters",
    "derive_climate_zone",
    "get_climate_profile",
    "get_survival_parameters",
    "load_climate_profiles",
    "AgeSource",
    "Permit",
    "SurvivalCore",
    "SurvivalStatus",
    "calculate_survival_core",
    "determine_system_age",
    "SystemPrediction",
    "build_system_prediction",
    "get_system_prediction",
    "CRITICALITY_WEIGHTS",
    "HomeOutlookResult",
    "compute_home_outlook",
    "get_late_life_state",
    "get_lifecycle_percent",
    "get_remaining_years_for_system",
    "get_system_planning_tier",
    "EvidenceType",
    "apply_decision",
    "apply_new_evidence",
    "build_decision_event",
    "record_decision",
]
