import uuid
from datetime import date, datetime
from sqlalchemy import String, Float, Integer, Boolean, Date, DateTime, JSON, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class PositionSample(Base):
    __tablename__ = "position_history"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    driver_id: Mapped[str] = mapped_column(String, nullable=False)
    session_id: Mapped[str | None] = mapped_column(String, nullable=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    speed: Mapped[float | None] = mapped_column(Float, nullable=True)  # m/s
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)  # m
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        Index("ix_position_history_driver_recorded", "driver_id", "recorded_at"),
    )


class DriverStats(Base):
    """Running telemetry projection, one row per driver."""

    __tablename__ = "driver_stats"

    driver_id: Mapped[str] = mapped_column(String, primary_key=True)
    last_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    calculated_speed: Mapped[float | None] = mapped_column(Float, nullable=True)  # km/h
    total_distance_today: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # km


class TrackingAnomaly(Base):
    __tablename__ = "tracking_anomalies"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    driver_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    anomalies: Mapped[list] = mapped_column(JSON, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    calculated_speed: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Geofence(Base):
    __tablename__ = "geofences"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="zone")
    center_lat: Mapped[float] = mapped_column(Float, nullable=False)
    center_lng: Mapped[float] = mapped_column(Float, nullable=False)
    radius_m: Mapped[float] = mapped_column(Float, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)


class GeofenceEvent(Base):
    __tablename__ = "geofence_events"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    driver_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    alerts: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class DailyTrackingStats(Base):
    __tablename__ = "daily_tracking_stats"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    driver_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    total_time_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    average_speed_kmh: Mapped[float] = mapped_column(Float, nullable=False)
    max_speed_kmh: Mapped[float] = mapped_column(Float, nullable=False)
    positions_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
