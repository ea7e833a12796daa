"""Field-level provenance tracking for system records."""
from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import InvalidProvenanceError
from .authority import AuthoritySource, parse_authority_source


class SystemField(str, Enum):
    """System-grade fields that carry provenance and confidence weight."""

    BRAND = "brand"
    MODEL = "model"
    SERIAL = "serial"
    MANUFACTURE_YEAR = "manufacture_year"
    CAPACITY_RATING = "capacity_rating"
    FUEL_TYPE = "fuel_type"


class FieldProvenance(BaseModel):
    """Which source last set a field, with what confidence, and when."""

    model_config = ConfigDict(frozen=True)

    source: AuthoritySource
    confidence: float = Field(ge=0.0, le=1.0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("source", mode="before")
    @classmethod
    def _known_source(cls, value: Any) -> AuthoritySource:
        return parse_authority_source(value)


ProvenanceMap = dict[SystemField, FieldProvenance]


def parse_provenance(raw: Mapping[str, Any] | None) -> ProvenanceMap:
    """Validate a stored provenance blob into a typed map.

    Storage keeps provenance as a JSON object keyed by field name. Keys must
    belong to SystemField and each entry must be a valid FieldProvenance.

    Raises:
        InvalidProvenanceError: on unknown field names or malformed entries.
        UnknownAuthoritySourceError: on a source outside the hierarchy.
    """
    if not raw:
        return {}

    parsed: ProvenanceMap = {}
    for key, entry in raw.items():
        try:
            field = SystemField(key)
        except ValueError:
            raise InvalidProvenanceError(f"Unknown provenance field: {key!r}") from None
        if isinstance(entry, FieldProvenance):
            parsed[field] = entry
            continue
        if not isinstance(entry, Mapping):
            raise InvalidProvenanceError(f"Provenance for {key!r} is not an object")
        # Pre-check so an unknown source raises its own error, not a ValidationError
        parse_authority_source(entry.get("source"))
        try:
            parsed[field] = FieldProvenance.model_validate(entry)
        except ValidationError as e:
            raise InvalidProvenanceError(f"Invalid provenance for {key!r}: {e}") from e
    return parsed


def dump_provenance(provenance: Mapping[SystemField, FieldProvenance]) -> dict[str, Any]:
    """Serialize a provenance map into its JSON storage form."""
    return {
        field.value: entry.model_dump(mode="json")
        for field, entry in provenance.items()
    }
