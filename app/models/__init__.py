from app.models.driver import Driver
from app.models.reservation import Reservation
from app.models.ledger import CreditLog, CreditError
from app.models.notification import Notification, AdminNotification
from app.models.system import SystemParams, SystemErrorLog, SystemLog
from app.models.tracking import (
    PositionSample, DriverStats, TrackingAnomaly, Geofence, GeofenceEvent, DailyTrackingStats,
)

__all__ = [
    "Driver", "Reservation", "CreditLog", "CreditError", "Notification", "AdminNotification",
    "SystemParams", "SystemErrorLog", "SystemLog", "PositionSample", "DriverStats",
    "TrackingAnomaly", "Geofence", "GeofenceEvent", "DailyTrackingStats",
]
