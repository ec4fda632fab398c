"""
Tests for payload validation and loading (rideweather/config/loader.py).
"""
import json

import pytest

from rideweather.config.loader import AnalysisConfigError, build_ride_request, load_ride_request
from rideweather.core.models import UnitSystem


def _payload(**overrides):
    payload = {
        "samples": [
            {"distance": 0, "timestamp": "2026-06-01T07:00:00+00:00", "temperature": 18,
             "wind_speed": 2.0, "condition": " Light Rain "},
            {"distance": 5000, "timestamp": "2026-06-01T07:10:00+00:00", "temperature": 19,
             "wind_speed": 2.5, "precipitation_probability": 0.2},
        ],
        "power_segments": [
            {"start_distance": 0, "end_distance": 5000, "duration": 600, "grade": 0.01, "power": 190},
        ],
        "settings": {"unit_system": "metric", "ftp": 260},
    }
    payload.update(overrides)
    return payload


class TestBuildRideRequest:
    """Validation and conversion of decoded payloads."""

    def test_valid_payload(self):
        request = build_ride_request(_payload())
        assert len(request.samples) == 2
        assert request.samples[0].condition == "light rain"
        assert request.samples[0].feels_like == 18
        assert request.power_segments[0].power == 190
        assert request.settings.ftp == 260
        assert request.total_distance == 5000
        assert request.resolved_speed() == pytest.approx(5000 / 600)

    def test_unit_system_any_casing(self):
        request = build_ride_request(_payload(settings={"unit_system": "Imperial"}))
        assert request.settings.unit_system == UnitSystem.IMPERIAL

    def test_probability_out_of_range(self):
        bad = _payload()
        bad["samples"][1]["precipitation_probability"] = 1.5
        with pytest.raises(AnalysisConfigError, match="precipitation_probability"):
            build_ride_request(bad)

    def test_unordered_samples_rejected(self):
        bad = _payload()
        bad["samples"].reverse()
        with pytest.raises(AnalysisConfigError, match="non-decreasing distance"):
            build_ride_request(bad)

    def test_inverted_power_segment_rejected(self):
        bad = _payload(power_segments=[{"start_distance": 100, "end_distance": 50, "duration": 10}])
        with pytest.raises(AnalysisConfigError):
            build_ride_request(bad)

    def test_non_object_payload(self):
        with pytest.raises(AnalysisConfigError, match="JSON object"):
            build_ride_request([1, 2, 3])


class TestLoadRideRequest:
    """Reading payloads from disk."""

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "ride.json"
        path.write_text(json.dumps(_payload()), encoding="utf-8")
        request = load_ride_request(path)
        assert request.samples[1].distance == 5000

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_ride_request(tmp_path / "absent.json")

    def test_bad_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(AnalysisConfigError, match="not valid JSON"):
            load_ride_request(path)
