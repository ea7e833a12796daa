"""Tests for canonical system sync."""

from datetime import UTC, datetime

import pytest

from habitta.exceptions import UnknownSystemKindError
from habitta.models.authority import AuthoritySource, InstallSource
from habitta.models.system import CanonicalSystem
from habitta.updates.canonical import (
    InstallYearBasis,
    SyncReason,
    infer_install_year,
    is_canonical_system,
    normalize_system_key,
    plan_canonical_sync,
    plan_replacement_reset,
    sync_to_canonical,
)

PHOTO = "https://storage.example.com/homes/home-1/plate.jpg"


class TestInferInstallYear:
    """Tests for the install-year guardrail."""

    def test_low_confidence_adds_inventory_buffer(self):
        """A weak manufacture-year read is estimated one year later."""
        inferred = infer_install_year(2020, 0.5)
        assert inferred.year == 2021
        assert inferred.is_estimated
        assert inferred.basis is InstallYearBasis.MANUFACTURE_YEAR

    def test_confident_serial_decode_is_exact(self):
        """A confident decode is taken as the install year."""
        inferred = infer_install_year(2020, 0.9)
        assert inferred.year == 2020
        assert not inferred.is_estimated
        assert inferred.basis is InstallYearBasis.SERIAL_DECODE

    def test_threshold_is_inclusive(self):
        """Exactly 0.7 counts as a confident decode."""
        assert infer_install_year(2018, 0.7).year == 2018

    def test_missing_year(self):
        """No manufacture year means no install year."""
        inferred = infer_install_year(None, 0.95)
        assert inferred.year is None
        assert inferred.basis is InstallYearBasis.UNKNOWN


class TestNormalizeSystemKey:
    """Tests for system key normalization."""

    @pytest.mark.parametrize(
        "key,kind",
        [
            ("water_heater_rheem_abc123", "water_heater"),
            ("WaterHeater", "water_heater"),
            ("furnace", "hvac"),
            ("air_conditioner", "hvac"),
            ("HVAC_carrier_x", "hvac"),
            ("shingle_roof", "roof"),
            ("pool_pump_1", "pool"),
        ],
    )
    def test_normalize(self, key, kind):
        """Suffixed and synonymous keys collapse to a kind."""
        assert normalize_system_key(key) == kind

    def test_is_canonical_system(self):
        """Only HVAC, roof and water heater are canonical."""
        assert is_canonical_system("water_heater_rheem_x")
        assert is_canonical_system("furnace")
        assert not is_canonical_system("pool_pump")


class TestPlanCanonicalSync:
    """Tests for the pure sync decision."""

    def _existing(self, **overrides) -> CanonicalSystem:
        data = dict(
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            install_year=2015,
            install_source=InstallSource.USER,
            confidence=0.6,
        )
        data.update(overrides)
        return CanonicalSystem(**data)

    def test_unknown_kind_raises(self):
        """Non-canonical kinds are a programming error."""
        with pytest.raises(UnknownSystemKindError):
            plan_canonical_sync(
                None,
                home_id="home-1",
                user_id="user-1",
                kind="pool",
                manufacture_year=2020,
                confidence=0.5,
                source=AuthoritySource.PHOTO_ANALYSIS,
            )

    def test_install_year_kept_without_new_year(self):
        """An update without a manufacture year leaves the install year alone."""
        plan = plan_canonical_sync(
            self._existing(),
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            manufacture_year=None,
            confidence=0.7,
            source=AuthoritySource.USER_CONFIRMED,
        )
        assert plan.reason is SyncReason.SYNCED
        assert plan.system.install_year == 2015
        assert plan.system.confidence == 0.7

    def test_confidence_never_drops(self):
        """Canonical confidence is the max of incoming and existing."""
        plan = plan_canonical_sync(
            self._existing(confidence=0.8),
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            manufacture_year=2019,
            confidence=0.3,
            source=AuthoritySource.PHOTO_ANALYSIS,
            now=datetime(2026, 2, 1, tzinfo=UTC),
        )
        assert plan.system.confidence == 0.8
        assert plan.system.install_year == 2020
        assert plan.system.install_year_estimated is True

    def test_lower_install_source_rejected(self):
        """A photo never overwrites a permit-backed record."""
        plan = plan_canonical_sync(
            self._existing(install_source=InstallSource.PERMIT),
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            manufacture_year=2019,
            confidence=0.99,
            source=AuthoritySource.PHOTO_ANALYSIS,
        )
        assert plan.reason is SyncReason.HIGHER_AUTHORITY_EXISTS
        assert plan.system is None


    def test_future_install_year_rejected(self):
        """This year's unit plus the inventory buffer lands in the future and is dropped."""
        plan = plan_canonical_sync(
            self._existing(),
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            manufacture_year=2026,
            confidence=0.5,
            source=AuthoritySource.PHOTO_ANALYSIS,
            photo_evidence_id=PHOTO,
            now=datetime(2026, 3, 1, tzinfo=UTC),
        )
        assert plan.reason is SyncReason.SYNCED
        assert plan.rejected_install_year == 2027
        assert plan.system.install_year == 2015
        assert plan.system.processed_photo_hashes

    def test_install_year_before_home_built_rejected(self):
        """A decoded year older than the house is not written."""
        plan = plan_canonical_sync(
            None,
            home_id="home-1",
            user_id="user-1",
            kind="roof",
            manufacture_year=1995,
            confidence=0.9,
            source=AuthoritySource.PHOTO_ANALYSIS,
            home_year_built=2005,
        )
        assert plan.reason is SyncReason.CREATED
        assert plan.rejected_install_year == 1995
        assert plan.system.install_year is None
        assert plan.system.install_year_basis is None

    def test_install_confidence_scored(self):
        """A photo-backed owner-level year scores base 0.60 plus the photo modifier."""
        plan = plan_canonical_sync(
            None,
            home_id="home-1",
            user_id="user-1",
            kind="water_heater",
            manufacture_year=2019,
            confidence=0.5,
            source=AuthoritySource.PHOTO_ANALYSIS,
            photo_evidence_id=PHOTO,
        )
        assert plan.system.install_confidence == 0.67

        permit = plan_canonical_sync(
            None,
            home_id="home-1",
            user_id="user-1",
            kind="water_heater",
            manufacture_year=2019,
            confidence=0.5,
            source=AuthoritySource.PERMIT_RECORD,
        )
        assert permit.system.install_confidence == 0.85


class TestPlanReplacementReset:
    """Tests for resetting the canonical record after a replacement."""

    DECIDED = datetime(2026, 4, 2, tzinfo=UTC)

    def test_permit_record_reset_to_new_unit(self):
        """The old unit's permit authority does not outlive the unit."""
        existing = CanonicalSystem(
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            install_year=2009,
            install_source=InstallSource.PERMIT,
            install_year_basis="manufacture_year",
            confidence=0.41,
            processed_photo_hashes=["abc"],
        )
        plan = plan_replacement_reset(
            existing,
            home_id="home-1",
            user_id="user-1",
            kind="hvac",
            decided_at=self.DECIDED,
            confidence=0.2,
        )

        assert plan.reason is SyncReason.SYNCED
        assert plan.system.id == existing.id
        assert plan.system.install_year == 2026
        assert plan.system.install_source is InstallSource.USER
        assert plan.system.install_year_estimated is False
        assert plan.system.install_year_basis == InstallYearBasis.REPLACEMENT.value
        assert plan.system.install_confidence == 0.6
        assert plan.system.confidence == 0.2
        assert plan.system.processed_photo_hashes == []
        assert plan.system.last_photo_analysis_at is None

    def test_missing_record_created(self):
        """A replacement on a home with no canonical record creates one."""
        plan = plan_replacement_reset(
            None,
            home_id="home-1",
            user_id="user-1",
            kind="roof",
            decided_at=self.DECIDED,
            confidence=0.2,
        )
        assert plan.reason is SyncReason.CREATED
        assert plan.system.user_id == "user-1"
        assert plan.system.install_year == 2026

    def test_unowned_home_is_no_data(self):
        """Without an owner nothing is created."""
        plan = plan_replacement_reset(
            None, home_id="home-9", user_id=None, kind="hvac", decided_at=self.DECIDED, confidence=0.2
        )
        assert plan.reason is SyncReason.NO_DATA
        assert plan.system is None


class TestSyncToCanonical:
    """Tests for sync_to_canonical against SQLite."""

    def test_creates_record_for_known_home(self, store):
        """First evidence creates the canonical record with the home owner."""
        result = sync_to_canonical(
            store, "home-1", "water_heater", 2020, 0.5, AuthoritySource.PHOTO_ANALYSIS, PHOTO
        )
        assert result.synced
        assert result.reason is SyncReason.CREATED

        canonical = store.get_canonical("home-1", "water_heater")
        assert canonical.id == result.system_id
        assert canonical.user_id == "user-1"
        assert canonical.install_year == 2021
        assert canonical.install_year_estimated is True
        assert canonical.install_year_basis == "manufacture_year"
        assert canonical.install_source is InstallSource.USER
        assert len(canonical.processed_photo_hashes) == 1
        assert canonical.last_photo_analysis_at is not None

    def test_duplicate_photo_is_idempotent(self, store):
        """The same photo (even with a rotated signed-URL token) is processed once."""
        sync_to_canonical(
            store, "home-1", "hvac", 2018, 0.6, AuthoritySource.PHOTO_ANALYSIS, PHOTO + "?token=a"
        )
        before = store.get_canonical("home-1", "hvac")

        again = sync_to_canonical(
            store, "home-1", "hvac", 2018, 0.9, AuthoritySource.PHOTO_ANALYSIS, PHOTO + "?token=b"
        )
        after = store.get_canonical("home-1", "hvac")

        assert not again.synced
        assert again.reason is SyncReason.DUPLICATE_PHOTO
        assert again.system_id == before.id
        assert after.confidence == before.confidence
        assert after.processed_photo_hashes == before.processed_photo_hashes

    def test_new_photo_syncs(self, store):
        """A different photo updates the existing record."""
        sync_to_canonical(store, "home-1", "roof", 2010, 0.5, AuthoritySource.PHOTO_ANALYSIS, PHOTO)
        result = sync_to_canonical(
            store, "home-1", "roof", 2012, 0.9, AuthoritySource.PHOTO_ANALYSIS, PHOTO + "-2"
        )
        canonical = store.get_canonical("home-1", "roof")
        assert result.reason is SyncReason.SYNCED
        assert canonical.install_year == 2012
        assert canonical.install_year_estimated is False
        assert canonical.confidence == 0.9
        assert len(canonical.processed_photo_hashes) == 2

    def test_permit_record_blocks_photo(self, store):
        """Higher install-source authority wins on the canonical record."""
        sync_to_canonical(store, "home-1", "hvac", 2014, 0.8, AuthoritySource.PERMIT_RECORD)
        result = sync_to_canonical(
            store, "home-1", "hvac", 2019, 0.95, AuthoritySource.PHOTO_ANALYSIS, PHOTO
        )
        canonical = store.get_canonical("home-1", "hvac")
        assert not result.synced
        assert result.reason is SyncReason.HIGHER_AUTHORITY_EXISTS
        assert canonical.install_year == 2014
        assert canonical.install_source is InstallSource.PERMIT

    def test_unknown_home_is_no_data(self, store):
        """Without an owning user there is nothing to create."""
        result = sync_to_canonical(store, "home-404", "hvac", 2019, 0.9, AuthoritySource.USER_CONFIRMED)
        assert not result.synced
        assert result.reason is SyncReason.NO_DATA
        assert store.get_canonical("home-404", "hvac") is None
