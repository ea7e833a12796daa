"""System records, update payloads, and canonical records."""
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid_utils import uuid7 as _uuid7

from .authority import AuthoritySource, InstallSource, parse_authority_source
from .install import check_install_year
from .provenance import FieldProvenance, SystemField


def uuid7() -> UUID:
    """Generate a UUID7 compatible with stdlib UUID."""
    return UUID(str(_uuid7()))


def _now() -> datetime:
    return datetime.now(UTC)


class ExtractedData(BaseModel):
    """Partial field map produced by an evidence source.

    None means "this source said nothing about the field", not "clear it".
    """

    brand: str | None = None
    model: str | None = None
    serial: str | None = None
    manufacture_year: int | None = Field(default=None, ge=1900, le=2100)
    capacity_rating: str | None = None
    fuel_type: str | None = None
    system_type: str | None = Field(
        default=None, description="Free-text system label, used for copy only"
    )

    def candidate_fields(self) -> dict[SystemField, Any]:
        """Weighted fields this source actually supplied."""
        return {
            field: getattr(self, field.value)
            for field in SystemField
            if getattr(self, field.value) is not None
        }


class ConfidenceSignal(BaseModel):
    """How sure the evidence producer is about its extraction."""

    visual_certainty: float | None = Field(default=None, ge=0.0, le=1.0)
    source_reliability: float = Field(ge=0.0, le=1.0)

    @property
    def effective(self) -> float:
        """Visual certainty wins when the producer reported one."""
        if self.visual_certainty is not None:
            return self.visual_certainty
        return self.source_reliability


class SystemUpdate(BaseModel):
    """A single piece of evidence about one system in one home."""

    home_id: str
    system_key: str
    source: AuthoritySource
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)
    confidence_signal: ConfidenceSignal
    image_url: str | None = None

    @field_validator("source", mode="before")
    @classmethod
    def _known_source(cls, value: Any) -> AuthoritySource:
        return parse_authority_source(value)


class StateChange(str, Enum):
    """Most recent explicit lifecycle transition."""

    REPLACED = "replaced"
    EVIDENCE_ADDED = "evidence_added"


class SystemLifecycleState(BaseModel):
    """Risk and baseline bookkeeping owned by a system generation."""

    risk_outlook_12mo: int | None = Field(default=None, ge=0, le=100)
    baseline_strength: int = Field(default=20, ge=0, le=100)
    installation_verified: bool = False
    last_state_change: StateChange | None = None
    last_state_change_at: datetime | None = None
    last_decision_type: str | None = None
    last_decision_at: datetime | None = None
    next_review_at: datetime | None = None


class SystemRecord(BaseModel):
    """One maintained system (HVAC, roof, water heater, ...) in a home.

    Records are never hard-deleted. A replacement starts a new generation
    with explicitly reset state; see lifecycle.state_reset.
    """

    id: str = Field(default_factory=lambda: str(uuid7()))
    home_id: str
    system_key: str

    # System-grade fields (weighted by the confidence calculator)
    brand: str | None = None
    model: str | None = None
    serial: str | None = None
    manufacture_year: int | None = None
    capacity_rating: str | None = None
    fuel_type: str | None = None

    install_year: int | None = None
    install_source: InstallSource | None = None

    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    field_provenance: dict[SystemField, FieldProvenance] = Field(default_factory=dict)
    data_sources: list[AuthoritySource] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    generation: int = Field(default=1, ge=1)
    revision: int = Field(default=0, ge=0, description="Optimistic-concurrency counter")
    state: SystemLifecycleState = Field(default_factory=SystemLifecycleState)

    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    plausible_install_year = field_validator("install_year")(check_install_year)

    def field_values(self) -> dict[SystemField, Any]:
        """Current values of the weighted fields (None when unset)."""
        return {field: getattr(self, field.value) for field in SystemField}


class CanonicalSystemStatus(str, Enum):
    ACTIVE = "ACTIVE"
    REPLACED = "REPLACED"


class CanonicalSystem(BaseModel):
    """The single authoritative record per (home, system kind).

    Prediction and chat consumers read this, not the per-evidence
    SystemRecord rows, so that evidence never fragments across tables.
    """

    id: str = Field(default_factory=lambda: str(uuid7()))
    home_id: str
    user_id: str
    kind: str
    install_year: int | None = None
    install_source: InstallSource = InstallSource.INFERRED
    install_year_estimated: bool | None = None
    install_year_basis: str | None = None
    install_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    status: CanonicalSystemStatus = CanonicalSystemStatus.ACTIVE
    processed_photo_hashes: list[str] = Field(default_factory=list)
    last_photo_analysis_at: datetime | None = None
    updated_at: datetime = Field(default_factory=_now)

    plausible_install_year = field_validator("install_year")(check_install_year)
