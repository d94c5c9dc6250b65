"""
Integration tests for telemetry, geofences, tracking queries and the
daily history jobs.
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.jobs.tracking_maintenance import prune_position_history, rollup_daily_tracking_stats
from app.models.system import SystemLog
from app.models.tracking import (
    DailyTrackingStats, DriverStats, Geofence, GeofenceEvent, PositionSample, TrackingAnomaly,
)
from app.schemas.schemas import PositionSnapshot
from app.services.telemetry import check_geofences, on_driver_position_update
from app.services.tracking_queries import get_driver_tracking_history, get_driver_tracking_stats
from conftest import PLATEAU, offset_north

# Africa/Dakar is UTC+0 all year, so local and UTC days coincide.
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
T0 = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


def _snapshot(point, at, **extra):
    return PositionSnapshot(lat=point[0], lng=point[1], timestamp=at, **extra)


def _sample(driver_id, point, at, **extra):
    return PositionSample(driver_id=driver_id, lat=point[0], lng=point[1], recorded_at=at, **extra)


@pytest.mark.asyncio
class TestPositionUpdate:
    async def test_accumulates_distance(self, db):
        before = _snapshot(PLATEAU, T0)
        after = _snapshot(offset_north(1.0), T0 + timedelta(minutes=1), accuracy=10)

        await on_driver_position_update(db, "d1", before, after)

        stats = await db.get(DriverStats, "d1")
        assert stats.total_distance_today == pytest.approx(1.0, abs=0.01)
        assert stats.calculated_speed == pytest.approx(60.0, abs=1.0)
        assert (stats.last_lat, stats.last_lng) == offset_north(1.0)
        assert (await db.execute(select(TrackingAnomaly))).scalars().all() == []

    async def test_updates_live_reservation(self, db, add_reservation):
        reservation = await add_reservation(status="assigned")
        before = _snapshot(PLATEAU, T0)
        after = _snapshot(offset_north(0.5), T0 + timedelta(seconds=30), speed=10)

        await on_driver_position_update(db, "d1", before, after, booking_id=reservation.id)

        await db.refresh(reservation)
        assert (reservation.driver_lat, reservation.driver_lng) == offset_north(0.5)
        assert reservation.real_distance_m == pytest.approx(500, abs=5)
        assert reservation.driver_position_at is not None
        assert reservation.last_tracking_update is not None
        assert reservation.estimated_arrival is not None

    async def test_no_eta_without_destination_coords(self, db, add_reservation):
        reservation = await add_reservation(status="assigned", destination_lat=None, destination_lng=None)

        await on_driver_position_update(
            db, "d1", _snapshot(PLATEAU, T0), _snapshot(offset_north(0.5), T0 + timedelta(seconds=30)),
            booking_id=reservation.id,
        )

        await db.refresh(reservation)
        assert reservation.driver_lat is not None
        assert reservation.estimated_arrival is None

    async def test_flags_anomalies(self, db):
        before = _snapshot(PLATEAU, T0)
        after = _snapshot(offset_north(1.0), T0 + timedelta(seconds=10), accuracy=80)

        await on_driver_position_update(db, "d1", before, after)

        rows = (await db.execute(select(TrackingAnomaly))).scalars().all()
        assert len(rows) == 1
        assert {a["type"] for a in rows[0].anomalies} == {"excessive_speed", "low_accuracy"}
        assert rows[0].calculated_speed > 120

    async def test_unchanged_or_first_position_is_ignored(self, db):
        same = _snapshot(PLATEAU, T0)
        await on_driver_position_update(db, "d1", same, _snapshot(PLATEAU, T0 + timedelta(seconds=5)))
        await on_driver_position_update(db, "d2", None, same)
        await on_driver_position_update(db, "d3", PositionSnapshot(), same)

        assert (await db.execute(select(DriverStats))).scalars().all() == []


@pytest.mark.asyncio
class TestGeofences:
    async def test_alerts_for_active_zones_only(self, db):
        db.add(Geofence(name="Plateau", type="restricted", center_lat=PLATEAU[0], center_lng=PLATEAU[1], radius_m=500))
        db.add(Geofence(name="Old zone", center_lat=PLATEAU[0], center_lng=PLATEAU[1], radius_m=500, active=False))
        sample = _sample("d1", PLATEAU, T0)
        db.add(sample)
        await db.commit()

        alerts = await check_geofences(db, sample)

        assert [(a["name"], a["type"], a["distance_m"]) for a in alerts] == [("Plateau", "restricted", 0)]
        events = (await db.execute(select(GeofenceEvent))).scalars().all()
        assert len(events) == 1
        assert events[0].driver_id == "d1"

    async def test_outside_every_zone(self, db):
        db.add(Geofence(name="Plateau", center_lat=PLATEAU[0], center_lng=PLATEAU[1], radius_m=500))
        sample = _sample("d1", offset_north(2.0), T0)
        db.add(sample)
        await db.commit()

        assert await check_geofences(db, sample) == []
        assert (await db.execute(select(GeofenceEvent))).scalars().all() == []


@pytest.mark.asyncio
class TestTrackingHistory:
    async def test_time_ordered_and_filtered(self, db):
        db.add_all([
            _sample("d1", offset_north(0.2), T0 + timedelta(minutes=2), session_id="s1"),
            _sample("d1", PLATEAU, T0, session_id="s1"),
            _sample("d1", offset_north(0.4), T0 + timedelta(minutes=4), session_id="s2"),
            _sample("d2", PLATEAU, T0 + timedelta(minutes=1)),
        ])
        await db.commit()

        history = await get_driver_tracking_history(db, "d1")
        assert history["count"] == 3
        assert [p["timestamp"] for p in history["positions"]] == [
            T0, T0 + timedelta(minutes=2), T0 + timedelta(minutes=4)
        ]

        session = await get_driver_tracking_history(db, "d1", session_id="s1")
        assert session["count"] == 2

        windowed = await get_driver_tracking_history(db, "d1", start=T0 + timedelta(minutes=1))
        assert windowed["count"] == 2

    async def test_unknown_driver_is_empty(self, db):
        assert await get_driver_tracking_history(db, "nobody") == {"success": True, "count": 0, "positions": []}


@pytest.mark.asyncio
class TestTrackingStats:
    async def test_today_from_samples_periods_from_rollups(self, db):
        today = NOW.date()
        db.add_all([
            _sample("d1", PLATEAU, NOW - timedelta(minutes=60), speed=10),
            _sample("d1", offset_north(1.0), NOW - timedelta(minutes=30), speed=12),
            _sample("d1", PLATEAU, NOW - timedelta(days=1)),
        ])
        for days_ago, km in ((1, 10.0), (10, 20.0), (40, 30.0)):
            db.add(DailyTrackingStats(
                driver_id="d1",
                day=today - timedelta(days=days_ago),
                total_distance_km=km,
                total_time_minutes=60.0,
                average_speed_kmh=km,
                max_speed_kmh=km * 2,
                positions_count=100,
            ))
        await db.commit()

        stats = (await get_driver_tracking_stats(db, "d1", now=NOW))["stats"]

        assert stats["today"]["positions_count"] == 2
        assert stats["today"]["distance_km"] == pytest.approx(1.0, abs=0.01)
        assert stats["today"]["total_time_minutes"] == pytest.approx(30.0)
        assert stats["today"]["average_speed_kmh"] == pytest.approx(2.0, abs=0.05)
        assert stats["today"]["max_speed_kmh"] == pytest.approx(43.2)
        assert stats["week"]["distance_km"] == pytest.approx(10.0)
        assert stats["month"]["distance_km"] == pytest.approx(30.0)
        assert stats["month"]["average_speed_kmh"] == pytest.approx(15.0)
        assert stats["total"]["distance_km"] == pytest.approx(60.0)
        assert stats["total"]["max_speed_kmh"] == pytest.approx(60.0)
        assert stats["total"]["positions_count"] == 300

    async def test_empty(self, db):
        stats = (await get_driver_tracking_stats(db, "d1", now=NOW))["stats"]
        assert stats["today"]["distance_km"] == 0
        assert stats["total"]["average_speed_kmh"] == 0


@pytest.mark.asyncio
class TestHistoryMaintenance:
    async def test_prune_in_batches(self, db):
        old = NOW - timedelta(days=8)
        db.add_all([_sample("d1", PLATEAU, old + timedelta(minutes=i)) for i in range(5)])
        db.add(_sample("d1", PLATEAU, NOW - timedelta(days=1)))
        await db.commit()

        assert await prune_position_history(db, now=NOW, batch_size=2) == 5

        remaining = await db.scalar(select(func.count()).select_from(PositionSample))
        assert remaining == 1
        log = (await db.execute(select(SystemLog))).scalars().one()
        assert log.type == "cleanup_position_history"
        assert log.payload["deleted"] == 5

    async def test_rollup_of_yesterday(self, db):
        yesterday = NOW - timedelta(days=1)
        db.add_all([
            _sample("d1", PLATEAU, yesterday.replace(hour=9), speed=10),
            _sample("d1", offset_north(1.0), yesterday.replace(hour=9, minute=10), speed=5),
            _sample("d2", PLATEAU, NOW - timedelta(hours=1)),
        ])
        await db.commit()

        assert await rollup_daily_tracking_stats(db, now=NOW) == 1

        rows = (await db.execute(select(DailyTrackingStats))).scalars().all()
        assert len(rows) == 1
        row = rows[0]
        assert row.driver_id == "d1"
        assert row.day == date(2026, 3, 9)
        assert row.positions_count == 2
        assert row.total_time_minutes == pytest.approx(10.0)
        assert row.total_distance_km == pytest.approx(1.0, abs=0.01)
        assert row.max_speed_kmh == pytest.approx(36.0)

        assert await rollup_daily_tracking_stats(db, now=NOW) == 0
        assert await db.scalar(select(func.count()).select_from(DailyTrackingStats)) == 1
