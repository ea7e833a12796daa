"""Explicit state transitions driven by user decisions and new evidence.

Old risk data must not bleed forward after a replacement. A ``replace_now``
decision starts a new generation of the system record:

    generation N (age 14, risk 92%)
      -> replace_now
    generation N+1 (installed this year, risk 5%, baseline 20%)

Every decision is recorded as an append-only ``DecisionEvent`` tied to the
generation it was made against.
"""
from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from ..exceptions import SystemNotFoundError
from ..logging import get_logger
from ..models.authority import InstallSource
from ..models.decision import DecisionEvent, DecisionType
from ..models.provenance import SystemField
from ..models.system import StateChange, SystemLifecycleState, SystemRecord
from ..store.base import SystemStore
from ..updates.canonical import (
    is_canonical_system,
    normalize_system_key,
    reset_canonical_for_replacement,
)

logger = get_logger(__name__)

# New installation baseline
REPLACED_RISK_OUTLOOK_12MO = 5
RESET_BASELINE_STRENGTH = 20
UNVERIFIED_CONFIDENCE = 0.2

NO_ACTION_REVIEW_DAYS = 30
MAX_BASELINE_STRENGTH = 100


class EvidenceType(str, Enum):
    PERMIT_DATA = "permit_data"
    RECEIPT_UPLOAD = "receipt_upload"
    PHOTO_UPLOAD = "photo_upload"
    USER_INPUT = "user_input"


EVIDENCE_STRENGTH: dict[EvidenceType, int] = {
    EvidenceType.PERMIT_DATA: 40,
    EvidenceType.RECEIPT_UPLOAD: 30,
    EvidenceType.PHOTO_UPLOAD: 15,
    EvidenceType.USER_INPUT: 10,
}

# Evidence that proves the installation actually happened
VERIFYING_EVIDENCE = frozenset({EvidenceType.PERMIT_DATA, EvidenceType.RECEIPT_UPLOAD})


def build_decision_event(
    record: SystemRecord,
    decision_type: DecisionType | str,
    assumptions: Mapping[str, Any] | None = None,
    user_notes: str | None = None,
    defer_until: datetime | None = None,
    *,
    now: datetime | None = None,
) -> DecisionEvent:
    """Build the event for a decision against the record's current generation."""
    decision_type = DecisionType(decision_type)
    timestamp = now or datetime.now(UTC)
    assumptions_json = dict(assumptions or {})
    next_review_at = None

    if decision_type is DecisionType.REPLACE_NOW:
        assumptions_json["reset_triggered"] = True
        assumptions_json["reset_at"] = timestamp.isoformat()
    elif decision_type is DecisionType.DEFER_WITH_DATE:
        next_review_at = defer_until
    elif decision_type is DecisionType.NO_ACTION:
        # Explicitly choosing to do nothing is not the same as never deciding
        assumptions_json["user_acknowledged_risk"] = True
        next_review_at = timestamp + timedelta(days=NO_ACTION_REVIEW_DAYS)

    return DecisionEvent(
        home_id=record.home_id,
        system_id=record.id,
        generation=record.generation,
        decision_type=decision_type,
        assumptions_json=assumptions_json,
        user_notes=user_notes,
        defer_until=defer_until,
        next_review_at=next_review_at,
        created_at=timestamp,
    )


def apply_decision(record: SystemRecord, decision: DecisionEvent) -> SystemRecord:
    """Record state after ``decision``. Pure; returns a new record."""
    decided_at = decision.created_at

    if decision.decision_type is not DecisionType.REPLACE_NOW:
        next_review_at = decision.next_review_at or record.state.next_review_at
        state = record.state.model_copy(
            update={
                "last_decision_type": decision.decision_type.value,
                "last_decision_at": decided_at,
                "next_review_at": next_review_at,
            }
        )
        return record.model_copy(update={"state": state})

    cleared_fields = {f.value: None for f in SystemField}
    return record.model_copy(
        update={
            **cleared_fields,
            "field_provenance": {},
            "install_year": decided_at.year,
            "install_source": InstallSource.USER,
            "confidence": UNVERIFIED_CONFIDENCE,
            "generation": record.generation + 1,
            "state": SystemLifecycleState(
                risk_outlook_12mo=REPLACED_RISK_OUTLOOK_12MO,
                baseline_strength=RESET_BASELINE_STRENGTH,
                installation_verified=False,
                last_state_change=StateChange.REPLACED,
                last_state_change_at=decided_at,
                last_decision_type=decision.decision_type.value,
                last_decision_at=decided_at,
            ),
        }
    )


def record_decision(
    store: SystemStore,
    system_id: str,
    decision_type: DecisionType | str,
    *,
    assumptions: Mapping[str, Any] | None = None,
    user_notes: str | None = None,
    defer_until: datetime | None = None,
    now: datetime | None = None,
) -> tuple[DecisionEvent, SystemRecord]:
    """Persist a decision and the state transition it triggers.

    The record is written first under its revision check, so a lost race
    leaves no orphaned event behind. Replacing a core system also resets its
    canonical record to the new unit.

    Raises:
        SystemNotFoundError: if the store has no record with ``system_id``.
        StaleRecordError: if the record changed while the decision was applied.
    """
    record = store.get_system(system_id)
    if record is None:
        raise SystemNotFoundError(system_id)

    event = build_decision_event(
        record, decision_type, assumptions, user_notes, defer_until, now=now
    )
    stored = store.save_system(apply_decision(record, event), expected_revision=record.revision)
    store.append_decision(event)

    logger.info(
        "decision.recorded",
        home_id=record.home_id,
        system_id=system_id,
        decision_type=event.decision_type.value,
        generation=event.generation,
        decision_id=event.id,
    )
    if event.decision_type is DecisionType.REPLACE_NOW:
        logger.info(
            "system.reset",
            system_id=system_id,
            previous_generation=record.generation,
            generation=stored.generation,
        )
        if is_canonical_system(record.system_key):
            reset_canonical_for_replacement(
                store,
                record.home_id,
                normalize_system_key(record.system_key),
                event.created_at,
                stored.confidence,
            )
    return event, stored


def apply_new_evidence(
    record: SystemRecord, evidence_type: EvidenceType | str, *, now: datetime | None = None
) -> SystemRecord:
    """Strengthen the baseline after new evidence arrives. Pure."""
    evidence_type = EvidenceType(evidence_type)
    state = record.state
    strength = min(
        MAX_BASELINE_STRENGTH, state.baseline_strength + EVIDENCE_STRENGTH[evidence_type]
    )
    return record.model_copy(
        update={
            "state": state.model_copy(
                update={
                    "baseline_strength": strength,
                    "installation_verified": state.installation_verified
                    or evidence_type in VERIFYING_EVIDENCE,
                    "last_state_change": StateChange.EVIDENCE_ADDED,
                    "last_state_change_at": now or datetime.now(UTC),
                }
            )
        }
    )
