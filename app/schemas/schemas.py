from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ReservationStatusEnum(str, Enum):
    pending = "pending"
    assigned = "assigned"
    completed = "completed"
    cancelled = "cancelled"


class DriverStatusEnum(str, Enum):
    offline = "offline"
    available = "available"
    on_ride = "on_ride"


# ---------------------------------------------------------------------------
# Caller / trigger snapshots
# ---------------------------------------------------------------------------

class Caller(BaseModel):
    """Authenticated principal behind a caller-invoked operation."""
    identity: str
    is_admin: bool = False


class ReservationSnapshot(BaseModel):
    """The reservation fields the settlement trigger compares before/after a write."""
    status: str
    payment_validated: Optional[bool] = None
    driver_credited: Optional[bool] = None
    assigned_driver_id: Optional[str] = None
    estimated_price: Optional[Any] = None

    model_config = {"from_attributes": True}


class PositionSnapshot(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    timestamp: Optional[datetime] = None
    accuracy: Optional[float] = None
    speed: Optional[float] = None  # m/s


# ---------------------------------------------------------------------------
# Reservation schemas
# ---------------------------------------------------------------------------

class ReservationCreateRequest(BaseModel):
    origin_address: str = Field(..., min_length=1, max_length=500)
    origin_lat: Optional[float] = Field(None, ge=-90, le=90)
    origin_lng: Optional[float] = Field(None, ge=-180, le=180)
    destination_address: str = Field(..., min_length=1, max_length=500)
    destination_lat: Optional[float] = Field(None, ge=-90, le=90)
    destination_lng: Optional[float] = Field(None, ge=-180, le=180)
    client_name: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=20)
    estimated_price: Optional[str] = Field(None, max_length=64)


class ReservationResponse(BaseModel):
    id: str
    status: ReservationStatusEnum
    origin_address: str
    origin_lat: Optional[float] = None
    origin_lng: Optional[float] = None
    origin_approximate: bool
    destination_address: str
    client_name: Optional[str] = None
    estimated_price: Optional[str] = None
    assigned_driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    assignment_mode: Optional[str] = None
    driver_distance_m: Optional[int] = None
    driver_eta_minutes: Optional[int] = None
    payment_validated: bool
    driver_credited: bool
    credited_amount: Optional[Decimal] = None
    real_distance_m: float
    estimated_arrival: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AssignDriverRequest(BaseModel):
    driver_id: str = Field(..., min_length=1)


class CompleteRideRequest(BaseModel):
    driver_id: str = Field(..., min_length=1)


class CancelReservationRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AssignedDriver(BaseModel):
    name: str
    phone: str
    distance_km: float


class AssignDriverResponse(BaseModel):
    success: bool
    message: str
    driver: AssignedDriver


class ActionResponse(BaseModel):
    success: bool
    message: str


class PaymentValidationResponse(BaseModel):
    reservation_id: str
    payment_validated: bool
    settlement: str
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Driver schemas
# ---------------------------------------------------------------------------

class DriverCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., min_length=6, max_length=20)
    balance: Optional[str] = Field(None, max_length=64)


class DriverResponse(BaseModel):
    id: str
    name: str
    phone: str
    status: str
    available_balance: Optional[str] = None
    current_booking_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DriverStatusRequest(BaseModel):
    status: DriverStatusEnum


class LocationUpdateRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    timestamp: Optional[datetime] = None
    accuracy: Optional[float] = Field(None, ge=0)
    speed: Optional[float] = Field(None, ge=0)
    session_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Settlement / tracking responses
# ---------------------------------------------------------------------------

class RecoveryItem(BaseModel):
    reservation_id: str
    success: bool
    amount: Optional[Decimal] = None
    error: Optional[str] = None


class RecoveryResponse(BaseModel):
    success: bool
    message: str
    count: int
    details: list[RecoveryItem]


class DuplicateCreditEntry(BaseModel):
    operation_id: Optional[str] = None
    driver_amount: Decimal
    created_at: datetime


class DuplicateCredit(BaseModel):
    reservation_id: str
    credit_count: int
    total_credited: Decimal
    details: list[DuplicateCreditEntry]


class DuplicateAuditResponse(BaseModel):
    success: bool
    message: str
    duplicate_count: int
    duplicates: list[DuplicateCredit]


class TrackedPosition(BaseModel):
    lat: float
    lng: float
    speed: Optional[float] = None
    accuracy: Optional[float] = None
    timestamp: datetime


class TrackingHistoryResponse(BaseModel):
    success: bool
    count: int
    positions: list[TrackedPosition]


class PeriodStats(BaseModel):
    distance_km: float = 0.0
    average_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    positions_count: int = 0
    total_time_minutes: float = 0.0


class TrackingStats(BaseModel):
    today: PeriodStats
    week: PeriodStats
    month: PeriodStats
    total: PeriodStats


class TrackingStatsResponse(BaseModel):
    success: bool
    stats: TrackingStats
