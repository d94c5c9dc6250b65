"""Initial schema: drivers, reservations, settlement ledger, tracking, notifications, system tables"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "drivers",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), unique=True, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="offline"),
        sa.Column("lat", sa.Float, nullable=True),
        sa.Column("lng", sa.Float, nullable=True),
        sa.Column("position_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("position_accuracy", sa.Float, nullable=True),
        sa.Column("position_speed", sa.Float, nullable=True),
        sa.Column("legacy_balance", sa.String(64), nullable=True),
        sa.Column("available_balance", sa.String(64), nullable=True),
        sa.Column("current_booking_id", sa.String, nullable=True),
        sa.Column("active_reservation_id", sa.String, nullable=True),
        sa.Column("earnings_day", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("earnings_week", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("earnings_month", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("earnings_total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("completed_rides", sa.Integer, nullable=False, server_default="0"),
        sa.Column("credited_rides", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_credit_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_credit_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("last_credit_reservation_id", sa.String, nullable=True),
        sa.Column("last_assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("inactivity_detected", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_inactivity_check", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_drivers_status", "drivers", ["status"])
    op.create_index("ix_drivers_current_booking_id", "drivers", ["current_booking_id"])
    op.create_index("ix_drivers_active_reservation_id", "drivers", ["active_reservation_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("origin_address", sa.String(500), nullable=False),
        sa.Column("origin_lat", sa.Float, nullable=True),
        sa.Column("origin_lng", sa.Float, nullable=True),
        sa.Column("origin_approximate", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("destination_address", sa.String(500), nullable=False),
        sa.Column("destination_lat", sa.Float, nullable=True),
        sa.Column("destination_lng", sa.Float, nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("client_phone", sa.String(20), nullable=True),
        sa.Column("estimated_price", sa.String(64), nullable=True),
        sa.Column("assigned_driver_id", sa.String, sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("driver_name", sa.String(255), nullable=True),
        sa.Column("driver_phone", sa.String(20), nullable=True),
        sa.Column("assignment_mode", sa.String(20), nullable=True),
        sa.Column("assigned_by", sa.String(255), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("driver_distance_m", sa.Integer, nullable=True),
        sa.Column("driver_eta_minutes", sa.Integer, nullable=True),
        sa.Column("rejected_driver_ids", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("assignment_attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("cancelled_by", sa.String(255), nullable=True),
        sa.Column("payment_validated", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("driver_credited", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("credited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("credited_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("platform_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("credit_operation_id", sa.String(128), nullable=True),
        sa.Column("credit_version", sa.String(50), nullable=True),
        sa.Column("balance_before_credit", sa.Numeric(14, 2), nullable=True),
        sa.Column("balance_after_credit", sa.Numeric(14, 2), nullable=True),
        sa.Column("driver_lat", sa.Float, nullable=True),
        sa.Column("driver_lng", sa.Float, nullable=True),
        sa.Column("driver_position_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("real_distance_m", sa.Float, nullable=False, server_default="0"),
        sa.Column("estimated_arrival", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_tracking_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index("ix_reservations_assigned_driver_id", "reservations", ["assigned_driver_id"])
    op.create_index("ix_reservations_assigned_at", "reservations", ["assigned_at"])
    op.create_index("ix_reservations_payment_validated", "reservations", ["payment_validated"])
    op.create_index("ix_reservations_driver_credited", "reservations", ["driver_credited"])
    op.create_index("ix_reservations_created_at", "reservations", ["created_at"])

    op.create_table(
        "credit_logs",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("reservation_id", sa.String, nullable=False),
        sa.Column("driver_id", sa.String, nullable=False),
        sa.Column("operation_id", sa.String(128), nullable=False),
        sa.Column("ride_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("driver_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("platform_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("balance_before", sa.Numeric(14, 2), nullable=True),
        sa.Column("balance_after", sa.Numeric(14, 2), nullable=True),
        sa.Column("success", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("version", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_credit_logs_reservation_id", "credit_logs", ["reservation_id"])
    op.create_index("ix_credit_logs_driver_id", "credit_logs", ["driver_id"])
    op.create_index("ix_credit_logs_success", "credit_logs", ["success"])
    op.create_index("ix_credit_logs_created_at", "credit_logs", ["created_at"])

    op.create_table(
        "credit_errors",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("reservation_id", sa.String, nullable=False),
        sa.Column("driver_id", sa.String, nullable=True),
        sa.Column("operation_id", sa.String(128), nullable=True),
        sa.Column("error_message", sa.Text, nullable=False),
        sa.Column("error_code", sa.String(50), nullable=False, server_default="UNKNOWN"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_credit_errors_reservation_id", "credit_errors", ["reservation_id"])

    op.create_table(
        "position_history",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("driver_id", sa.String, nullable=False),
        sa.Column("session_id", sa.String, nullable=True),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        sa.Column("speed", sa.Float, nullable=True),
        sa.Column("accuracy", sa.Float, nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_position_history_recorded_at", "position_history", ["recorded_at"])
    op.create_index("ix_position_history_driver_recorded", "position_history", ["driver_id", "recorded_at"])

    op.create_table(
        "driver_stats",
        sa.Column("driver_id", sa.String, primary_key=True),
        sa.Column("last_lat", sa.Float, nullable=True),
        sa.Column("last_lng", sa.Float, nullable=True),
        sa.Column("last_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("calculated_speed", sa.Float, nullable=True),
        sa.Column("total_distance_today", sa.Float, nullable=False, server_default="0"),
    )

    op.create_table(
        "tracking_anomalies",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("driver_id", sa.String, nullable=False),
        sa.Column("anomalies", sa.JSON, nullable=False),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        sa.Column("accuracy", sa.Float, nullable=True),
        sa.Column("calculated_speed", sa.Float, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_tracking_anomalies_driver_id", "tracking_anomalies", ["driver_id"])

    op.create_table(
        "geofences",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="zone"),
        sa.Column("center_lat", sa.Float, nullable=False),
        sa.Column("center_lng", sa.Float, nullable=False),
        sa.Column("radius_m", sa.Float, nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_geofences_active", "geofences", ["active"])

    op.create_table(
        "geofence_events",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("driver_id", sa.String, nullable=False),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        sa.Column("alerts", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_geofence_events_driver_id", "geofence_events", ["driver_id"])

    op.create_table(
        "daily_tracking_stats",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("driver_id", sa.String, nullable=False),
        sa.Column("day", sa.Date, nullable=False),
        sa.Column("total_distance_km", sa.Float, nullable=False),
        sa.Column("total_time_minutes", sa.Float, nullable=False),
        sa.Column("average_speed_kmh", sa.Float, nullable=False),
        sa.Column("max_speed_kmh", sa.Float, nullable=False),
        sa.Column("positions_count", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_daily_tracking_stats_driver_id", "daily_tracking_stats", ["driver_id"])
    op.create_index("ix_daily_tracking_stats_day", "daily_tracking_stats", ["day"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("driver_id", sa.String, nullable=False),
        sa.Column("recipient", sa.String(20), nullable=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("reservation_id", sa.String, nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("payload", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_driver_id", "notifications", ["driver_id"])

    op.create_table(
        "admin_notifications",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("reservation_id", sa.String, nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("payload", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_admin_notifications_type", "admin_notifications", ["type"])

    op.create_table(
        "system_params",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("auto_assign", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("reassign_delay_minutes", sa.Integer, nullable=False, server_default="10"),
        sa.Column("search_radius_km", sa.Float, nullable=False, server_default="10"),
        sa.Column("notifications_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "system_errors",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("reservation_id", sa.String, nullable=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("stack", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_system_errors_type", "system_errors", ["type"])

    op.create_table(
        "system_logs",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("system_logs")
    op.drop_table("system_errors")
    op.drop_table("system_params")
    op.drop_table("admin_notifications")
    op.drop_table("notifications")
    op.drop_table("daily_tracking_stats")
    op.drop_table("geofence_events")
    op.drop_table("geofences")
    op.drop_table("tracking_anomalies")
    op.drop_table("driver_stats")
    op.drop_table("position_history")
    op.drop_table("credit_errors")
    op.drop_table("credit_logs")
    op.drop_table("reservations")
    op.drop_table("drivers")
