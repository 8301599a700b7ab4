"""
Tests for training pace zones.

Run with: python -m pytest tests/test_paces.py -v
"""

import math

import pytest

from forecasting.paces import derive_paces, pace_for_zone
from forecasting.params import PaceZoneRatios
from forecasting.performance import pace_at_duration


class TestDerivePaces:
    """Tests for expanding threshold pace into zones."""

    def test_from_measured_lt(self):
        """Zones are fixed multiples of measured LT pace."""
        paces = derive_paces(45.0, lt_pace=300)
        assert paces.t == 300
        assert paces.e == pytest.approx(345)
        assert paces.m == pytest.approx(315)
        assert paces.i == pytest.approx(279)
        assert paces.r == pytest.approx(264)

    def test_zone_ordering(self):
        """Rep < interval < threshold < marathon < easy."""
        paces = derive_paces(52.0)
        assert paces.r < paces.i < paces.t < paces.m < paces.e

    def test_threshold_from_index(self):
        """Without LT, threshold is the one-hour race pace."""
        paces = derive_paces(50.0)
        assert paces.t == pytest.approx(pace_at_duration(50.0, 60))

    @pytest.mark.parametrize("lt", [None, 0, -5, math.nan])
    def test_unusable_lt_falls_back(self, lt):
        assert derive_paces(50.0, lt_pace=lt).t == pytest.approx(pace_at_duration(50.0, 60))

    def test_custom_ratios(self):
        ratios = PaceZoneRatios(easy=1.2)
        assert derive_paces(45.0, lt_pace=300, ratios=ratios).e == pytest.approx(360)


class TestPaceForZone:
    """Tests for named-zone lookup."""

    @pytest.fixture
    def paces(self):
        return derive_paces(45.0, lt_pace=300)

    def test_named_zones(self, paces):
        assert pace_for_zone('tempo', paces) == paces.t
        assert pace_for_zone('MP', paces) == paces.m
        assert pace_for_zone(' Easy ', paces) == paces.e
        assert pace_for_zone('5k', paces) == paces.i

    def test_race_paces_between_zones(self, paces):
        assert pace_for_zone('hm', paces) == pytest.approx(paces.m * 0.97)
        assert pace_for_zone('10k', paces) == pytest.approx(paces.m * 0.95)

    def test_unknown_zone_is_easy(self, paces):
        assert pace_for_zone('fartlek', paces) == paces.e
