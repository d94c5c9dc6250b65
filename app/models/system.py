import uuid
from datetime import datetime
from sqlalchemy import String, Float, Integer, Boolean, DateTime, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class SystemParams(Base):
    """Singleton dispatch configuration row (id = "config"), managed by operators."""

    __tablename__ = "system_params"

    id: Mapped[str] = mapped_column(String, primary_key=True, default="config")
    auto_assign: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reassign_delay_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    search_radius_km: Mapped[float] = mapped_column(Float, nullable=False, default=10.0)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SystemErrorLog(Base):
    __tablename__ = "system_errors"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    reservation_id: Mapped[str | None] = mapped_column(String, nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    stack: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class SystemLog(Base):
    __tablename__ = "system_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
