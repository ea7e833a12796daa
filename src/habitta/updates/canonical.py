"""Canonical consistency: project system updates into one record per kind.

Photo analysis and other evidence land on per-evidence ``SystemRecord`` rows.
Predictors and chat read the canonical ``CanonicalSystem`` instead, so every
update for a core system kind is mirrored here.

Install-source hierarchy on the canonical record:
permit > inspection > user > inferred. Photo evidence (user) can upgrade an
inferred record but can never overwrite a permit-backed one. A recorded
replacement is the one exception: the owner's decision resets the record to
the new unit regardless of the authority the old unit carried.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from ..exceptions import UnknownSystemKindError
from ..idempotency.fingerprint import fingerprint_photo
from ..logging import get_logger
from ..models.authority import (
    AuthoritySource,
    InstallSource,
    can_overwrite_install_source,
    map_to_install_source,
)
from ..models.install import is_plausible_install_year
from ..models.system import CanonicalSystem
from ..store.base import SystemStore
from .confidence import score_install_confidence

logger = get_logger(__name__)

CANONICAL_SYSTEMS: tuple[str, ...] = ("hvac", "roof", "water_heater")

# Extraction confidence at which a serial decode is trusted as the install year
SERIAL_DECODE_CONFIDENCE = 0.7

# Median time a unit sits in inventory before installation
INVENTORY_BUFFER_YEARS = 1


class InstallYearBasis(str, Enum):
    SERIAL_DECODE = "serial_decode"
    MANUFACTURE_YEAR = "manufacture_year"
    REPLACEMENT = "replacement"
    UNKNOWN = "unknown"


class SyncReason(str, Enum):
    HIGHER_AUTHORITY_EXISTS = "higher_authority_exists"
    DUPLICATE_PHOTO = "duplicate_photo"
    SYNCED = "synced"
    CREATED = "created"
    NO_DATA = "no_data"


@dataclass(frozen=True)
class InstallYearInference:
    year: int | None
    is_estimated: bool
    basis: InstallYearBasis


@dataclass(frozen=True)
class SyncResult:
    synced: bool
    reason: SyncReason
    system_id: str | None = None


@dataclass(frozen=True)
class CanonicalSyncPlan:
    """Outcome of the pure sync decision.

    ``system`` is the record to write, or None when the sync is a no-op.
    ``rejected_install_year`` holds an inferred year that failed the
    plausibility check and was not written.
    """

    reason: SyncReason
    system: CanonicalSystem | None
    install_year: InstallYearInference | None = None
    rejected_install_year: int | None = None


def normalize_system_key(system_key: str) -> str:
    """Normalize a system key to its canonical kind.

    e.g. "water_heater_rheem_abc123" -> "water_heater", "furnace" -> "hvac"
    """
    lower = system_key.lower()

    if "hvac" in lower or "furnace" in lower or "air_condition" in lower:
        return "hvac"
    if "roof" in lower or "shingle" in lower:
        return "roof"
    if "water_heater" in lower or "waterheater" in lower:
        return "water_heater"

    return lower.split("_")[0]


def is_canonical_system(system_key: str) -> bool:
    return normalize_system_key(system_key) in CANONICAL_SYSTEMS


def infer_install_year(
    manufacture_year: int | None, confidence: float | None
) -> InstallYearInference:
    """Infer the install year from a manufacture year.

    Manufacture year is not install year. A confident serial decode is taken
    at face value; anything weaker gets the inventory buffer and is flagged
    as an estimate. No manufacture year means no install year.
    """
    if not manufacture_year:
        return InstallYearInference(None, True, InstallYearBasis.UNKNOWN)

    if confidence is not None and confidence >= SERIAL_DECODE_CONFIDENCE:
        return InstallYearInference(manufacture_year, False, InstallYearBasis.SERIAL_DECODE)

    return InstallYearInference(
        manufacture_year + INVENTORY_BUFFER_YEARS, True, InstallYearBasis.MANUFACTURE_YEAR
    )


def _require_canonical_kind(kind: str) -> str:
    normalized = kind.lower()
    if normalized not in CANONICAL_SYSTEMS:
        raise UnknownSystemKindError(kind, "not a canonical system")
    return normalized


def plan_canonical_sync(
    existing: CanonicalSystem | None,
    *,
    home_id: str,
    user_id: str | None,
    kind: str,
    manufacture_year: int | None,
    confidence: float,
    source: AuthoritySource | str,
    photo_evidence_id: str | None = None,
    home_year_built: int | None = None,
    now: datetime | None = None,
) -> CanonicalSyncPlan:
    """Decide what a sync should write, without touching storage.

    ``user_id`` is only consulted when no canonical record exists yet. An
    inferred install year in the future or before ``home_year_built`` is
    dropped; the rest of the sync still applies.

    Raises:
        UnknownSystemKindError: if ``kind`` is not a canonical system.
        UnknownAuthoritySourceError: if ``source`` is outside the hierarchy.
    """
    kind = _require_canonical_kind(kind)
    timestamp = now or datetime.now(UTC)
    install_source = map_to_install_source(source)

    if existing is not None and not can_overwrite_install_source(
        existing.install_source, install_source
    ):
        return CanonicalSyncPlan(SyncReason.HIGHER_AUTHORITY_EXISTS, None)

    photo_hash = fingerprint_photo(photo_evidence_id, kind).value if photo_evidence_id else None
    if existing is not None and photo_hash and photo_hash in existing.processed_photo_hashes:
        return CanonicalSyncPlan(SyncReason.DUPLICATE_PHOTO, None)

    inferred = infer_install_year(manufacture_year, confidence)

    rejected = None
    if inferred.year is not None and not is_plausible_install_year(
        inferred.year, home_year_built, current_year=timestamp.year
    ):
        rejected = inferred.year
        inferred = InstallYearInference(None, True, InstallYearBasis.UNKNOWN)

    update: dict = {"install_source": install_source, "updated_at": timestamp}
    if inferred.year is not None:
        update["install_year"] = inferred.year
        update["install_year_estimated"] = inferred.is_estimated
        update["install_year_basis"] = inferred.basis.value
        update["install_confidence"] = score_install_confidence(
            install_source, has_photo=photo_hash is not None
        ).score
    if photo_hash:
        update["last_photo_analysis_at"] = timestamp

    if existing is not None:
        update["confidence"] = max(confidence, existing.confidence)
        if photo_hash:
            update["processed_photo_hashes"] = [*existing.processed_photo_hashes, photo_hash]
        return CanonicalSyncPlan(
            SyncReason.SYNCED, existing.model_copy(update=update), inferred, rejected
        )

    if not user_id:
        return CanonicalSyncPlan(SyncReason.NO_DATA, None, inferred, rejected)

    created = CanonicalSystem(
        home_id=home_id,
        user_id=user_id,
        kind=kind,
        confidence=confidence,
        processed_photo_hashes=[photo_hash] if photo_hash else [],
    ).model_copy(update=update)
    return CanonicalSyncPlan(SyncReason.CREATED, created, inferred, rejected)


def sync_to_canonical(
    store: SystemStore,
    home_id: str,
    kind: str,
    manufacture_year: int | None,
    confidence: float,
    source: AuthoritySource | str,
    photo_evidence_id: str | None = None,
) -> SyncResult:
    """Mirror an update into the canonical record for (home, kind).

    Read-modify-write against ``store``; callers serialize per (home, kind).
    """
    existing = store.get_canonical(home_id, kind)
    user_id = store.get_home_owner(home_id) if existing is None else existing.user_id

    plan = plan_canonical_sync(
        existing,
        home_id=home_id,
        user_id=user_id,
        kind=kind,
        manufacture_year=manufacture_year,
        confidence=confidence,
        source=source,
        photo_evidence_id=photo_evidence_id,
        home_year_built=store.get_home_year_built(home_id),
    )
    existing_id = existing.id if existing else None

    if plan.rejected_install_year is not None:
        logger.warning(
            "canonical_sync.implausible_install_year",
            home_id=home_id,
            kind=kind,
            install_year=plan.rejected_install_year,
            manufacture_year=manufacture_year,
        )

    if plan.system is None:
        logger.info(
            "canonical_sync.skipped",
            home_id=home_id,
            kind=kind,
            reason=plan.reason.value,
            existing_source=existing.install_source.value if existing else None,
        )
        return SyncResult(False, plan.reason, existing_id)

    store.save_canonical(plan.system)
    logger.info(
        "canonical_sync.written",
        home_id=home_id,
        kind=kind,
        reason=plan.reason.value,
        system_id=plan.system.id,
        install_year=plan.system.install_year,
        confidence=plan.system.confidence,
    )
    return SyncResult(True, plan.reason, plan.system.id)


def plan_replacement_reset(
    existing: CanonicalSystem | None,
    *,
    home_id: str,
    user_id: str | None,
    kind: str,
    decided_at: datetime,
    confidence: float,
) -> CanonicalSyncPlan:
    """Point the canonical record at a newly installed unit.

    The old unit's install year, authority and photo history no longer
    describe what is in the home. The replacement year is owner-reported,
    so later photo or permit evidence for the new unit can refine it.
    """
    kind = _require_canonical_kind(kind)
    update = {
        "install_year": decided_at.year,
        "install_source": InstallSource.USER,
        "install_year_estimated": False,
        "install_year_basis": InstallYearBasis.REPLACEMENT.value,
        "install_confidence": score_install_confidence(InstallSource.USER).score,
        "confidence": confidence,
        "processed_photo_hashes": [],
        "last_photo_analysis_at": None,
        "updated_at": decided_at,
    }
    if existing is not None:
        return CanonicalSyncPlan(SyncReason.SYNCED, existing.model_copy(update=update))
    if not user_id:
        return CanonicalSyncPlan(SyncReason.NO_DATA, None)
    created = CanonicalSystem(home_id=home_id, user_id=user_id, kind=kind).model_copy(
        update=update
    )
    return CanonicalSyncPlan(SyncReason.CREATED, created)


def reset_canonical_for_replacement(
    store: SystemStore,
    home_id: str,
    kind: str,
    decided_at: datetime,
    confidence: float,
) -> SyncResult:
    existing = store.get_canonical(home_id, kind)
    plan = plan_replacement_reset(
        existing,
        home_id=home_id,
        user_id=store.get_home_owner(home_id) if existing is None else existing.user_id,
        kind=kind,
        decided_at=decided_at,
        confidence=confidence,
    )
    if plan.system is None:
        logger.info("canonical_sync.skipped", home_id=home_id, kind=kind, reason=plan.reason.value)
        return SyncResult(False, plan.reason)

    store.save_canonical(plan.system)
    logger.info(
        "canonical_sync.reset",
        home_id=home_id,
        kind=kind,
        system_id=plan.system.id,
        install_year=plan.system.install_year,
        previous_source=existing.install_source.value if existing else None,
    )
    return SyncResult(True, plan.reason, plan.system.id)


__all__ = [
    "CANONICAL_SYSTEMS",
    "CanonicalSyncPlan",
    "InstallYearBasis",
    "InstallYearInference",
    "SyncReason",
    "SyncResult",
    "infer_install_year",
    "is_canonical_system",
    "normalize_system_key",
    "plan_canonical_sync",
    "plan_replacement_reset",
    "reset_canonical_for_replacement",
    "sync_to_canonical",
]
