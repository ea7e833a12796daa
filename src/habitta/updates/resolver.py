"""Field-level conflict resolution under the authority hierarchy.

Rules, applied per weighted field the incoming evidence supplies:

1. No existing provenance, or higher incoming authority -> accept
2. Same authority, different value -> hold for human confirmation
3. Lower authority (or same authority, same value) -> ignore

Holds are never resolved by recency. Two equally authoritative sources that
disagree are an ambiguity for the homeowner to settle, not for the code.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..models.authority import AuthoritySource, authority_rank
from ..models.provenance import FieldProvenance, ProvenanceMap, SystemField
from ..models.system import ConfidenceSignal, ExtractedData
from .confidence import FIELD_WEIGHTS, calculate_system_confidence


@dataclass
class ResolveResult:
    update_applied: bool
    was_overwrite: bool
    requires_confirmation: bool
    updated_fields: dict[SystemField, Any]
    updated_provenance: ProvenanceMap
    fields_updated: list[SystemField] = field(default_factory=list)
    fields_held: list[SystemField] = field(default_factory=list)
    confidence_delta: float = 0.0
    new_confidence: float = 0.0
    previous_confidence: float = 0.0


def resolve_field_updates(
    existing_fields: Mapping[SystemField, Any],
    existing_provenance: Mapping[SystemField, FieldProvenance],
    extracted_data: ExtractedData,
    source: AuthoritySource | str,
    confidence_signal: ConfidenceSignal,
    *,
    now: datetime | None = None,
) -> ResolveResult:
    """Resolve incoming evidence against a record's current provenance.

    Pure: inputs are not mutated. ``updated_fields`` holds only the fields
    written by this resolution; ``updated_provenance`` is the complete map
    after resolution.

    Raises:
        UnknownAuthoritySourceError: if ``source`` (or a stored provenance
            source) is outside the hierarchy.
    """
    timestamp = now or datetime.now(UTC)
    incoming_rank = authority_rank(source)
    incoming_source = AuthoritySource(source)
    incoming_confidence = confidence_signal.effective

    updated_fields: dict[SystemField, Any] = {}
    updated_provenance: ProvenanceMap = dict(existing_provenance)
    fields_updated: list[SystemField] = []
    fields_held: list[SystemField] = []
    was_overwrite = False

    for system_field, value in extracted_data.candidate_fields().items():
        if system_field not in FIELD_WEIGHTS:
            continue

        current = existing_provenance.get(system_field)
        current_rank = authority_rank(current.source) if current else 0
        existing_value = existing_fields.get(system_field)

        if current is None or incoming_rank > current_rank:
            updated_fields[system_field] = value
            updated_provenance[system_field] = FieldProvenance(
                source=incoming_source,
                confidence=incoming_confidence,
                updated_at=timestamp,
            )
            fields_updated.append(system_field)
            if existing_value is not None:
                was_overwrite = True
        elif incoming_rank == current_rank and value != existing_value:
            fields_held.append(system_field)

    previous_confidence = calculate_system_confidence(existing_provenance)
    new_confidence = calculate_system_confidence(updated_provenance)
    applied = bool(fields_updated)

    return ResolveResult(
        update_applied=applied,
        was_overwrite=was_overwrite,
        requires_confirmation=bool(fields_held) and not applied,
        updated_fields=updated_fields,
        updated_provenance=updated_provenance,
        fields_updated=fields_updated,
        fields_held=fields_held,
        confidence_delta=round(new_confidence - previous_confidence, 2),
        new_confidence=new_confidence,
        previous_confidence=previous_confidence,
    )
