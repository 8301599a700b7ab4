"""Shared fixtures for the forecasting tests."""

import matplotlib
matplotlib.use('Agg')

import pytest

from forecasting import PersonalBests, RecentRace, initialize_tracking


@pytest.fixture
def balanced_pbs():
    """PBs for a ~49.8 index runner with moderate fade."""
    return PersonalBests(k5=1200, k10=2500, half=5550, marathon=11700)


@pytest.fixture
def fresh_recent_race():
    """10K run two weeks ago."""
    return RecentRace(distance_km=10, time_seconds=2460, weeks_ago=2)


@pytest.fixture
def intermediate_state():
    """Tracking state for an intermediate athlete (index 45)."""
    return initialize_tracking(initial_lt=300.0, initial_vo2=45.0, baseline_vdot=45.0)
