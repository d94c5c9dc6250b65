import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Float, Integer, Boolean, Numeric, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class Reservation(Base):
    __tablename__ = "reservations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # pending | assigned | completed | cancelled
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)

    origin_address: Mapped[str] = mapped_column(String(500), nullable=False)
    origin_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    origin_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    origin_approximate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    destination_address: Mapped[str] = mapped_column(String(500), nullable=False)
    destination_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    destination_lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # free-form, parsed with parse_money
    estimated_price: Mapped[str | None] = mapped_column(String(64), nullable=True)

    assigned_driver_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("drivers.id"), nullable=True, index=True
    )
    driver_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    driver_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # automatic | manual
    assignment_mode: Mapped[str | None] = mapped_column(String(20), nullable=True)
    assigned_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    driver_distance_m: Mapped[int | None] = mapped_column(Integer, nullable=True)
    driver_eta_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rejected_driver_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    assignment_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Settlement
    payment_validated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    driver_credited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    credited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    credited_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    platform_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    credit_operation_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    credit_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    balance_before_credit: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    balance_after_credit: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    # Live tracking
    driver_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    driver_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    driver_position_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    real_distance_m: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    estimated_arrival: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_tracking_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def has_origin_coords(self) -> bool:
        return self.origin_lat is not None and self.origin_lng is not None

    @property
    def has_destination_coords(self) -> bool:
        return self.destination_lat is not None and self.destination_lng is not None
