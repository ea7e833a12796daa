"""Pydantic data models."""

from .authority import (
    AUTHORITY_RANK,
    INSTALL_SOURCE_RANK,
    AuthoritySource,
    InstallSource,
    authority_rank,
    map_to_install_source,
)
from .decision import DecisionEvent, DecisionType
from .install import EARLIEST_INSTALL_YEAR, is_plausible_install_year
from .provenance import FieldProvenance, ProvenanceMap, SystemField, parse_provenance
from .system import (
    CanonicalSystem,
    ConfidenceSignal,
    ExtractedData,
    SystemLifecycleState,
    SystemRecord,
    SystemUpdate,
)
from .task import Alert, AlertConfig, MaintenanceTask, TaskPriority, TaskStatus
from .timeline import DataQuality, ReplacementWindow, SystemTimelineEntry

__all__ = [
    "AuthoritySource",
    "AUTHORITY_RANK",
    "authority_rank",
    "InstallSource",
    "INSTALL_SOURCE_RANK",
    "map_to_install_source",
    "EARLIEST_INSTALL_YEAR",
    "is_plausible_install_year",
    "SystemField",
    "FieldProvenance",
    "ProvenanceMap",
    "parse_provenance",
    "ExtractedData",
    "ConfidenceSignal",
    "SystemUpdate",
    "SystemRecord",
    "SystemLifecycleState",
    "CanonicalSystem",
    "DecisionEvent",
    "DecisionType",
    "DataQuality",
    "ReplacementWindow",
    "SystemTimelineEntry",
    "MaintenanceTask",
    "TaskStatus",
    "TaskPriority",
    "Alert",
    "AlertConfig",
]
