import enum
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentdesk.common.base_models import TimestampMixin, UUIDBase


class AvailabilityStatus(str, enum.Enum):
    available = "available"
    rented = "rented"
    maintenance = "maintenance"
    out_of_service = "out_of_service"


class Vehicle(UUIDBase, TimestampMixin):
    __tablename__ = "vehicles"

    license_plate: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    vehicle_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    fuel: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    monthly_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    daily_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    current_mileage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    apk_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    warranty_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    maintenance_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    gps: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    availability_status: Mapped[AvailabilityStatus] = mapped_column(
        Enum(AvailabilityStatus), nullable=False, default=AvailabilityStatus.available
    )
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    reservations = relationship("Reservation", back_populates="vehicle", lazy="select")
    expenses = relationship("Expense", back_populates="vehicle", lazy="select", cascade="all, delete-orphan")
