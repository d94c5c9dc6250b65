"""
Unit tests for the telemetry speed/elapsed/anomaly helpers.
"""
import pytest
from datetime import datetime, timedelta, timezone

from app.services.telemetry import (
    DEFAULT_ELAPSED_SECONDS, DEFAULT_TRAVEL_SPEED_KMH, detect_anomalies, elapsed_seconds,
    implied_speed_kmh, travel_speed_kmh,
)

T0 = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


class TestElapsed:
    def test_missing_timestamp_defaults(self):
        assert elapsed_seconds(None, T0) == DEFAULT_ELAPSED_SECONDS
        assert elapsed_seconds(T0, None) == DEFAULT_ELAPSED_SECONDS

    def test_non_positive_defaults(self):
        assert elapsed_seconds(T0, T0) == DEFAULT_ELAPSED_SECONDS
        assert elapsed_seconds(T0, T0 - timedelta(seconds=5)) == DEFAULT_ELAPSED_SECONDS

    def test_naive_timestamps_are_utc(self):
        assert elapsed_seconds(T0.replace(tzinfo=None), T0 + timedelta(seconds=30)) == 30


class TestSpeed:
    def test_km_per_hour(self):
        # 1 km in one minute
        assert implied_speed_kmh(1.0, 60) == pytest.approx(60.0)

    def test_travel_speed_from_device(self):
        assert travel_speed_kmh(10) == pytest.approx(36.0)

    def test_travel_speed_default(self):
        assert travel_speed_kmh(None) == DEFAULT_TRAVEL_SPEED_KMH
        assert travel_speed_kmh(0) == DEFAULT_TRAVEL_SPEED_KMH


class TestAnomalies:
    def test_none(self):
        assert detect_anomalies(60, 10) == []
        assert detect_anomalies(120, 50) == []

    def test_excessive_speed(self):
        assert [a["type"] for a in detect_anomalies(130, None)] == ["excessive_speed"]

    def test_low_accuracy(self):
        assert [a["type"] for a in detect_anomalies(20, 80)] == ["low_accuracy"]

    def test_both(self):
        assert len(detect_anomalies(300, 100)) == 2
