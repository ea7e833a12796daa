"""Update gate: the single entry point for system-grade data.

Every evidence source (photos, homeowner confirmations, permits, inference)
passes through ``apply_system_update``:

1. Find the existing record for (home, system key)
2. Resolve field updates under the authority hierarchy
3. Persist, unless the update was held or changed nothing
4. Mirror core systems into their canonical record
5. Gate downstream recompute on a meaningful confidence delta
"""
from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from enum import Enum

from ..logging import get_logger
from ..models.authority import AuthoritySource
from ..models.provenance import SystemField
from ..models.system import SystemRecord, SystemUpdate
from ..store.base import SystemStore
from .canonical import SyncResult, is_canonical_system, normalize_system_key, sync_to_canonical
from .confidence import is_meaningful_delta
from .resolver import ResolveResult, resolve_field_updates
from .summary import build_chat_summary

logger = get_logger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


class AuthorityOutcome(str, Enum):
    ACCEPTED = "accepted"  # at least one existing value was overwritten
    MERGED = "merged"  # only previously empty fields were filled
    HELD_FOR_CONFIRMATION = "held_for_confirmation"
    IGNORED = "ignored"


@dataclass
class SystemUpdateResult:
    system_id: str | None
    update_applied: bool
    confidence_delta: float
    authority_applied: AuthorityOutcome
    chat_summary: str
    fields_updated: list[SystemField] = field(default_factory=list)
    fields_held: list[SystemField] = field(default_factory=list)
    should_trigger_mode_recompute: bool = False
    canonical_sync: SyncResult | None = None


def generate_system_key(home_id: str, system_key: str, brand: str | None = None) -> str:
    """Deterministic storage key for a new system record.

    Same home + system type + brand always yields the same key, so retried
    inserts cannot fan out into duplicate rows.
    """
    brand_slug = _SLUG_RE.sub("_", (brand or "").lower()).strip("_")
    digest = hashlib.sha256(
        "\n".join([home_id, system_key.lower(), brand_slug]).encode("utf-8")
    ).hexdigest()[:8]
    if brand_slug:
        return f"{system_key}_{brand_slug}_{digest}"
    return f"{system_key}_{digest}"


def _merge_record(
    existing: SystemRecord, update: SystemUpdate, resolved: ResolveResult
) -> SystemRecord:
    images = list(existing.images)
    if update.image_url:
        images.append(update.image_url)

    data_sources = list(existing.data_sources)
    if update.source not in data_sources:
        data_sources.append(update.source)

    return existing.model_copy(
        update={
            **{f.value: value for f, value in resolved.updated_fields.items()},
            "field_provenance": resolved.updated_provenance,
            "images": images,
            "data_sources": data_sources,
            "confidence": max(existing.confidence, resolved.new_confidence),
        }
    )


def _new_record(update: SystemUpdate, resolved: ResolveResult) -> SystemRecord:
    return SystemRecord(
        home_id=update.home_id,
        system_key=generate_system_key(
            update.home_id, update.system_key, update.extracted_data.brand
        ),
        **{f.value: value for f, value in resolved.updated_fields.items()},
        field_provenance=resolved.updated_provenance,
        images=[update.image_url] if update.image_url else [],
        data_sources=[update.source],
        confidence=resolved.new_confidence,
    )


def apply_system_update(store: SystemStore, update: SystemUpdate) -> SystemUpdateResult:
    """Run one piece of evidence through the authority gate.

    Callers must keep at most one update in flight per (home, system key).
    A concurrent writer surfaces as StaleRecordError from the store.
    """
    existing = store.find_system(update.home_id, update.system_key)

    resolved = resolve_field_updates(
        existing.field_values() if existing else {},
        existing.field_provenance if existing else {},
        update.extracted_data,
        update.source,
        update.confidence_signal,
    )

    chat_summary = build_chat_summary(
        applied=resolved.update_applied,
        held=resolved.requires_confirmation,
        was_overwrite=resolved.was_overwrite,
        fields_updated=resolved.fields_updated,
        fields_held=resolved.fields_held,
        system_type=update.extracted_data.system_type or update.system_key,
        brand=update.extracted_data.brand,
    )
    existing_id = existing.id if existing else None

    if resolved.requires_confirmation:
        logger.info(
            "system_update.held",
            home_id=update.home_id,
            system_key=update.system_key,
            source=update.source.value,
            fields_held=[f.value for f in resolved.fields_held],
        )
        return SystemUpdateResult(
            system_id=existing_id,
            update_applied=False,
            confidence_delta=0.0,
            authority_applied=AuthorityOutcome.HELD_FOR_CONFIRMATION,
            chat_summary=chat_summary,
            fields_held=list(resolved.fields_held),
        )

    if not resolved.update_applied:
        logger.debug(
            "system_update.ignored",
            home_id=update.home_id,
            system_key=update.system_key,
            source=update.source.value,
        )
        return SystemUpdateResult(
            system_id=existing_id,
            update_applied=False,
            confidence_delta=0.0,
            authority_applied=AuthorityOutcome.IGNORED,
            chat_summary=chat_summary,
        )

    if existing is not None:
        stored = store.save_system(
            _merge_record(existing, update, resolved), expected_revision=existing.revision
        )
    else:
        stored = store.save_system(_new_record(update, resolved))

    canonical_sync = None
    if is_canonical_system(update.system_key):
        photo_evidence_id = (
            update.image_url if update.source == AuthoritySource.PHOTO_ANALYSIS else None
        )
        canonical_sync = sync_to_canonical(
            store,
            update.home_id,
            normalize_system_key(update.system_key),
            update.extracted_data.manufacture_year,
            resolved.new_confidence,
            update.source,
            photo_evidence_id=photo_evidence_id,
        )

    outcome = AuthorityOutcome.ACCEPTED if resolved.was_overwrite else AuthorityOutcome.MERGED
    logger.info(
        "system_update.applied",
        home_id=update.home_id,
        system_id=stored.id,
        source=update.source.value,
        outcome=outcome.value,
        fields_updated=[f.value for f in resolved.fields_updated],
        confidence=stored.confidence,
        confidence_delta=resolved.confidence_delta,
    )

    return SystemUpdateResult(
        system_id=stored.id,
        update_applied=True,
        confidence_delta=resolved.confidence_delta,
        authority_applied=outcome,
        chat_summary=chat_summary,
        fields_updated=list(resolved.fields_updated),
        fields_held=list(resolved.fields_held),
        should_trigger_mode_recompute=is_meaningful_delta(resolved.confidence_delta),
        canonical_sync=canonical_sync,
    )
