import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Float, Integer, Boolean, Numeric, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    # offline | available | on_ride
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="offline", index=True)

    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    position_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    position_accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    # m/s as reported by the device
    position_speed: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Balance lives under two legacy fields written by different client versions;
    # values are free-form ("15 000 FCFA", "15000", ...). legacy_balance is read first.
    legacy_balance: Mapped[str | None] = mapped_column(String(64), nullable=True)
    available_balance: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Current booking, duplicated under two legacy names; both must always match.
    current_booking_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    active_reservation_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    earnings_day: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    earnings_week: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    earnings_month: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    earnings_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    completed_rides: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credited_rides: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_credit_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_credit_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    last_credit_reservation_id: Mapped[str | None] = mapped_column(String, nullable=True)

    last_assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_activity_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    inactivity_detected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_inactivity_check: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def has_booking(self) -> bool:
        return bool(self.current_booking_id or self.active_reservation_id)

    def release(self) -> None:
        """Back to the available pool with both booking links cleared."""
        self.status = "available"
        self.current_booking_id = None
        self.active_reservation_id = None
