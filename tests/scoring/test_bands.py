"""Tests for band table mechanics."""

import pytest

from swellstrike.cache.models import WAVE_HEIGHT, WIND_SPEED
from swellstrike.scoring.bands import Band, BandTable, Factor
from swellstrike.utils.units import metres_to_feet


class TestBand:
    """Tests for Band range checks."""

    def test_default_half_open(self):
        band = Band(WAVE_HEIGHT, 10, low=2, high=4)
        assert band.contains(2)
        assert band.contains(3.99)
        assert not band.contains(4)
        assert not band.contains(1.99)

    def test_inclusive_flags(self):
        band = Band(WAVE_HEIGHT, 10, low=10, high=15, low_inclusive=False, high_inclusive=True)
        assert not band.contains(10)
        assert band.contains(15)

    def test_unbounded(self):
        assert Band(WAVE_HEIGHT, 10, low=12).contains(1e6)
        assert Band(WAVE_HEIGHT, 10, high=10).contains(-1e6)

    def test_nan_never_matches(self):
        assert not Band(WAVE_HEIGHT, 10).contains(float("nan"))

    def test_conversion_applied(self, make_reading):
        band = Band(WAVE_HEIGHT, 40, low=4, high=10, convert=metres_to_feet)
        assert band.matches(make_reading(wave_height=2.0))  # 6.56 ft
        assert not band.matches(make_reading(wave_height=0.5))  # 1.6 ft

    def test_missing_metric_never_matches(self, make_reading):
        band = Band(WIND_SPEED, 20, high=10)
        assert not band.matches(make_reading(wave_height=1.0))


class TestFactor:
    def test_first_matching_band_wins(self, make_reading):
        factor = Factor(
            "overlap",
            (Band(WAVE_HEIGHT, 5, low=0), Band(WAVE_HEIGHT, 50, low=1)),
        )
        assert factor.contribution(make_reading(wave_height=2.0)) == 5

    def test_no_match_is_zero(self, make_reading):
        factor = Factor("height", (Band(WAVE_HEIGHT, 5, low=10),))
        assert factor.contribution(make_reading(wave_height=2.0)) == 0


class TestBandTable:
    """Summation, clamping and regional variants."""

    @pytest.fixture
    def table(self):
        return BandTable(
            "test",
            (
                Factor("a", (Band(WAVE_HEIGHT, 80, low=1),)),
                Factor("b", (Band(WAVE_HEIGHT, 60, low=1),)),
                Factor("c", (Band(WIND_SPEED, -50, low=5),)),
            ),
        )

    def test_clamped_high(self, table, make_reading):
        assert table.score(make_reading(wave_height=2.0)) == 100

    def test_clamped_low(self, make_reading):
        table = BandTable("neg", (Factor("w", (Band(WIND_SPEED, -10, low=0),)),))
        assert table.score(make_reading(wind_speed=20.0)) == 0

    def test_breakdown_unclamped(self, table, make_reading):
        breakdown = table.breakdown(make_reading(wave_height=2.0, wind_speed=10.0))
        assert breakdown == {"a": 80, "b": 60, "c": -50}
        assert sum(breakdown.values()) == 90

    def test_with_factor_replaces_by_name(self, table, make_reading):
        variant = table.with_factor(Factor("a", (Band(WAVE_HEIGHT, 1, low=1),)), name="regional")

        assert variant.name == "regional"
        assert [f.name for f in variant.factors] == ["a", "b", "c"]
        assert variant.breakdown(make_reading(wave_height=2.0))["a"] == 1
        # Original untouched
        assert table.breakdown(make_reading(wave_height=2.0))["a"] == 80

    def test_with_factor_appends_new(self, table):
        variant = table.with_factor(Factor("d", ()))
        assert [f.name for f in variant.factors] == ["a", "b", "c", "d"]
        assert variant.name == "test"
