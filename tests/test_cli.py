"""
Tests for the command-line helpers.

Run with: python -m pytest tests/test_cli.py -v
"""

import json

import pytest

from forecasting.params import EngineParams
from main import predict_athlete, run_predict, run_trajectory


@pytest.fixture
def athlete():
    return {
        'target': 'half',
        'pbs': {'5k': 1200, '10k': 2500},
        'lt_pace': 255,
        'vo2max': 50,
        'recent_race': {'distance_km': 10, 'time_seconds': 2480, 'weeks_ago': 3},
        'weeks': 12,
        'sessions': 5,
        'experience_level': 'intermediate',
    }


class TestPredictAthlete:
    """Tests for the end-to-end athlete prediction."""

    def test_full_record(self, athlete):
        result = predict_athlete(athlete, EngineParams())
        assert 5000 < result['blended_time'] < 7000
        assert result['forecast']['forecast_vdot'] > result['vdot']
        assert result['paces']['r'] < result['paces']['e']
        assert {c['label'] for c in result['candidates']} >= {'5k PB', 'recent race', 'VO2max'}

    def test_no_sources(self):
        result = predict_athlete({'target': '10k'}, EngineParams())
        assert result['blended_time'] is None
        assert 'vdot' not in result

    def test_target_required(self):
        with pytest.raises(ValueError):
            predict_athlete({'pbs': {'5k': 1200}}, EngineParams())


class TestCommands:
    """Tests for the command runners."""

    def test_predict_json(self, athlete, tmp_path, capsys):
        path = tmp_path / 'athlete.json'
        path.write_text(json.dumps(athlete))
        run_predict(str(path), EngineParams(), as_json=True)
        printed = json.loads(capsys.readouterr().out)
        assert printed['runner_type'] in ('Speed', 'Balanced', 'Endurance')

    def test_trajectory_with_measurements(self, tmp_path, capsys):
        path = tmp_path / 'measurements.json'
        path.write_text(json.dumps([
            {'week': 4, 'lt_pace_sec_per_km': 296.0, 'source': 'manual'},
            {'week': 6, 'lt_pace_sec_per_km': 294.0, 'vo2max': 45.6},
        ]))
        trajectory, state = run_trajectory(45.0, lt=300.0, vo2=45.0, weeks=8,
                                           measurements=str(path))
        assert len(trajectory) == 8
        assert len(state.measurements) == 2
        assert state.last_assessment is not None
        assert 'Adaptation ratio' in capsys.readouterr().out
