"""Tests for the survival core and its climate configuration."""

from datetime import date

import pytest

from habitta.exceptions import UnknownClimateZoneError, UnknownSystemKindError
from habitta.lifecycle.config import (
    BUILTIN_PROFILES,
    SurvivalParameters,
    default_climate_zone,
    derive_climate_zone,
    get_climate_profile,
    get_survival_parameters,
    load_climate_profiles,
)
from habitta.lifecycle.survival import (
    AgeSource,
    Permit,
    SurvivalStatus,
    calculate_survival_core,
    determine_system_age,
    status_for_remaining,
)

PARAMS = SurvivalParameters()
YEAR = 2026


@pytest.fixture(autouse=True)
def _builtin_climate(monkeypatch):
    monkeypatch.delenv("HABITTA_CLIMATE_PROFILES", raising=False)
    monkeypatch.delenv("HABITTA_CLIMATE_ZONE", raising=False)


def _core(install_year=None, home_year_built=None, maintained=False, permits=()):
    return calculate_survival_core(
        install_year,
        home_year_built,
        maintained,
        permits,
        params=PARAMS,
        current_year=YEAR,
    )


class TestCalculateSurvivalCore:
    """Tests for calculate_survival_core."""

    def test_old_unit_is_high_risk(self):
        """A 14-year-old unit in high heat has no expected life left."""
        core = _core(install_year=2012)
        assert core.age_years == 14
        assert core.adjusted_lifespan_years == pytest.approx(11.9)
        assert core.remaining_years == 0.0
        assert core.status is SurvivalStatus.HIGH
        assert core.install_source is AgeSource.RECORDED

    def test_maintained_young_unit_is_low_risk(self):
        """Maintenance extends lifespan by ten percent."""
        core = _core(install_year=2020, maintained=True)
        assert core.adjusted_lifespan_years == pytest.approx(13.09)
        assert core.remaining_years == pytest.approx(7.09)
        assert core.status is SurvivalStatus.LOW
        assert core.has_recent_maintenance

    @pytest.mark.parametrize(
        "install_year,status",
        [
            (2018, SurvivalStatus.LOW),
            (2016, SurvivalStatus.MODERATE),
            (2015, SurvivalStatus.HIGH),
        ],
    )
    def test_status_by_age(self, install_year, status):
        """Remaining 3.9 is low, 1.9 moderate, 0.9 high."""
        assert _core(install_year=install_year).status is status

    def test_remaining_never_negative(self):
        """Remaining life is clamped at zero."""
        assert _core(install_year=1995).remaining_years == 0.0

    def test_future_install_year_is_ignored(self):
        """A future install year is not evidence; the default age applies."""
        core = _core(install_year=YEAR + 2)
        assert core.age_years == PARAMS.default_age
        assert core.install_source is AgeSource.DEFAULT
        assert core.status is SurvivalStatus.LOW

    def test_default_parameters_come_from_zone(self):
        """Without explicit params the configured zone is used."""
        core = calculate_survival_core(2016, None, False, current_year=YEAR)
        assert core.adjusted_lifespan_years == pytest.approx(11.9)

    def test_unconfigured_kind_raises(self):
        """A kind the zone does not cover is a configuration error."""
        with pytest.raises(UnknownSystemKindError):
            calculate_survival_core(2016, None, False, system_kind="roof", current_year=YEAR)


class TestStatusThresholds:
    """Tests for status_for_remaining boundaries."""

    @pytest.mark.parametrize(
        "remaining,status",
        [
            (3.01, SurvivalStatus.LOW),
            (3.0, SurvivalStatus.MODERATE),
            (1.01, SurvivalStatus.MODERATE),
            (1.0, SurvivalStatus.HIGH),
            (0.0, SurvivalStatus.HIGH),
        ],
    )
    def test_boundaries(self, remaining, status):
        """Thresholds are strict: exactly 3 is moderate, exactly 1 is high."""
        assert status_for_remaining(remaining, PARAMS) is status


class TestDetermineSystemAge:
    """Tests for age source priority."""

    def test_recorded_install_year_wins(self):
        """A recorded install year beats permits and home age."""
        permits = [Permit(id="p1", date_issued=date(2018, 5, 1), description="A/C change out")]
        age, source = determine_system_age(2020, 1990, permits, current_year=YEAR)
        assert (age, source) == (6, AgeSource.RECORDED)

    def test_install_year_before_home_built_is_ignored(self):
        """A unit cannot predate the house; home age is used instead."""
        assert determine_system_age(1980, 1990, current_year=YEAR) == (7, AgeSource.INFERRED)

    def test_implausible_install_year_falls_through_to_permit(self):
        """An 1890 install year yields to the next source in priority."""
        permits = [Permit(id="p1", date_issued=date(2018, 5, 1), description="A/C change out")]
        age, source = determine_system_age(1890, None, permits, current_year=YEAR)
        assert (age, source) == (8, AgeSource.PERMIT_REPLACEMENT)

    def test_replacement_permit(self):
        """A replacement permit dates the current unit."""
        permits = [Permit(id="p1", date_issued=date(2018, 5, 1), description="A/C change out")]
        age, source = determine_system_age(None, 1990, permits, current_year=YEAR)
        assert (age, source) == (8, AgeSource.PERMIT_REPLACEMENT)
        assert source.is_permit

    def test_replacement_beats_install_permit(self):
        """Replacement permits outrank install permits regardless of order."""
        permits = [
            Permit(id="p1", date_issued=date(2010, 1, 1), description="New HVAC install"),
            Permit(id="p2", date_issued=date(2019, 1, 1), description="HVAC replacement"),
        ]
        age, source = determine_system_age(None, None, permits, current_year=YEAR)
        assert (age, source) == (7, AgeSource.PERMIT_REPLACEMENT)

    def test_install_permit(self):
        """An install-only permit is used when no replacement permit exists."""
        permits = [Permit(id="p1", date_issued=date(2020, 3, 1), description="New HVAC install")]
        age, source = determine_system_age(None, None, permits, current_year=YEAR)
        assert (age, source) == (6, AgeSource.PERMIT_INSTALL)

    def test_permits_for_other_systems_ignored(self):
        """A roof permit says nothing about the HVAC."""
        permits = [Permit(id="p1", date_issued=date(2021, 1, 1), description="Reroof and replace decking")]
        age, source = determine_system_age(None, None, permits, current_year=YEAR)
        assert (age, source) == (PARAMS.default_age, AgeSource.DEFAULT)

    def test_undated_permit_ignored(self):
        """Permits without an issue date cannot date a system."""
        permits = [Permit(id="p1", description="HVAC replacement")]
        _, source = determine_system_age(None, None, permits, current_year=YEAR)
        assert source is AgeSource.DEFAULT

    def test_system_tags_match(self):
        """Structured tags match even without a keyword in the description."""
        permits = [
            Permit(
                id="p1",
                date_issued=date(2017, 6, 1),
                description="Mechanical equipment replacement",
                system_tags=["hvac"],
            )
        ]
        age, source = determine_system_age(None, None, permits, current_year=YEAR)
        assert (age, source) == (9, AgeSource.PERMIT_REPLACEMENT)

    def test_young_home_keeps_original_system(self):
        """A home under 15 years old is assumed to have its original unit."""
        assert determine_system_age(None, 2016, current_year=YEAR) == (10, AgeSource.INFERRED)

    def test_older_home_assumes_replacement(self):
        """An older home is assumed to have replaced the unit 7 years ago."""
        assert determine_system_age(None, 1990, current_year=YEAR) == (7, AgeSource.INFERRED)

    def test_nothing_known(self):
        """With no evidence at all the default age applies."""
        assert determine_system_age(None, None, current_year=YEAR) == (8, AgeSource.DEFAULT)


class TestClimateConfig:
    """Tests for climate profile loading."""

    def test_builtin_high_heat(self):
        """The built-in zone is calibrated for South Florida HVAC."""
        profile = get_climate_profile("high_heat", BUILTIN_PROFILES)
        assert profile.label == "Miami-Dade"
        assert profile.region == "south_florida"
        assert profile.parameters_for("hvac") == SurvivalParameters()

    def test_unknown_zone_raises(self):
        """Unknown zones fail loudly and still behave like a KeyError."""
        with pytest.raises(UnknownClimateZoneError) as exc:
            get_climate_profile("tundra", BUILTIN_PROFILES)
        assert isinstance(exc.value, KeyError)
        assert "tundra" in str(exc.value)

    def test_default_zone_from_env(self, monkeypatch):
        """HABITTA_CLIMATE_ZONE selects the default zone."""
        assert default_climate_zone() == "high_heat"
        monkeypatch.setenv("HABITTA_CLIMATE_ZONE", "coastal")
        assert default_climate_zone() == "coastal"

    def test_yaml_overrides_merge(self, env_tmp):
        """YAML values merge over built-ins field by field and can add zones."""
        path = env_tmp / "climate.yaml"
        path.write_text(
            "zones:\n"
            "  high_heat:\n"
            "    systems:\n"
            "      hvac:\n"
            "        baseline_lifespan: 13\n"
            "      water_heater:\n"
            "        baseline_lifespan: 10\n"
            "  coastal:\n"
            "    label: Gulf Coast\n"
            "    systems:\n"
            "      hvac:\n"
            "        climate_multiplier: 0.8\n"
            "  alpine:\n"
            "    label: Alpine\n"
            "    systems:\n"
            "      hvac:\n"
            "        baseline_lifespan: 16\n"
        )
        profiles = load_climate_profiles(path)

        hvac = profiles["high_heat"].parameters_for("hvac")
        assert hvac.baseline_lifespan == 13
        assert hvac.climate_multiplier == 0.85
        assert profiles["high_heat"].label == "Miami-Dade"
        assert profiles["high_heat"].parameters_for("water_heater").baseline_lifespan == 10

        coastal = profiles["coastal"]
        assert coastal.label == "Gulf Coast"
        assert coastal.region == "coastal"
        assert coastal.wear_factor == "salt air"
        assert coastal.parameters_for("hvac").climate_multiplier == 0.8
        assert coastal.parameters_for("hvac").baseline_lifespan == 14

        alpine = profiles["alpine"]
        assert alpine.region == "other"
        assert alpine.wear_factor is None
        assert alpine.parameters_for("hvac").baseline_lifespan == 16
        assert alpine.parameters_for("hvac").climate_multiplier == 0.85

        assert BUILTIN_PROFILES["high_heat"].parameters_for("hvac").baseline_lifespan == 14

    def test_yaml_path_from_env(self, env_tmp, monkeypatch):
        """HABITTA_CLIMATE_PROFILES points at the override file."""
        path = env_tmp / "climate.yaml"
        path.write_text("zones:\n  high_heat:\n    systems:\n      hvac:\n        maintenance_boost: 1.2\n")
        monkeypatch.setenv("HABITTA_CLIMATE_PROFILES", str(path))
        assert get_survival_parameters("hvac").maintenance_boost == 1.2

    def test_unknown_parameter_rejected(self, env_tmp):
        """Typos in override files are errors, not silently ignored."""
        path = env_tmp / "climate.yaml"
        path.write_text("zones:\n  high_heat:\n    systems:\n      hvac:\n        lifespan: 20\n")
        with pytest.raises(ValueError, match="lifespan"):
            load_climate_profiles(path)


class TestDeriveClimateZone:
    """Tests for deriving a home's climate zone from its address."""

    @pytest.mark.parametrize(
        "state,city,lat,zone",
        [
            ("FL", "Miami", None, "high_heat"),
            ("Florida", "Gainesville", 29.6, "high_heat"),
            ("AZ", None, None, "high_heat"),
            ("TX", "Houston", 29.8, "high_heat"),
            (None, None, 25.0, "high_heat"),
            ("FL", "Miami Beach", None, "high_heat"),
            ("CA", "San Diego", 32.7, "coastal"),
            ("SC", "Myrtle Beach", 33.7, "coastal"),
            ("IL", "Chicago", 41.9, "freeze_thaw"),
            ("MN", "Rochester", None, "freeze_thaw"),
            ("Wisconsin", None, None, "freeze_thaw"),
            ("OR", "Portland", 45.5, "freeze_thaw"),
            ("TN", "Nashville", 36.2, "moderate"),
            (None, None, None, "moderate"),
        ],
    )
    def test_zones(self, state, city, lat, zone):
        """High heat is checked first, then coastal, then freeze-thaw."""
        assert derive_climate_zone(state, city, lat) == zone

    def test_every_derived_zone_is_built_in(self):
        """Derived zones always resolve to a profile with HVAC parameters."""
        for zone in ("high_heat", "coastal", "freeze_thaw", "moderate"):
            assert get_climate_profile(zone, BUILTIN_PROFILES).parameters_for("hvac")

    def test_unpenalized_zone_lasts_longer(self):
        """Outside high heat the HVAC baseline is not shortened."""
        params = get_survival_parameters("hvac", derive_climate_zone("TN", "Nashville"), BUILTIN_PROFILES)
        core = calculate_survival_core(2016, None, False, params=params, current_year=YEAR)
        assert core.adjusted_lifespan_years == pytest.approx(14.0)
        assert core.status is SurvivalStatus.LOW
