import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentdesk.common.base_models import GUID, TimestampMixin, UUIDBase


class ReservationStatus(str, enum.Enum):
    pending = "pending"
    booked = "booked"
    confirmed = "confirmed"
    picked_up = "picked_up"
    returned = "returned"
    completed = "completed"
    cancelled = "cancelled"


class Reservation(UUIDBase, TimestampMixin):
    __tablename__ = "reservations"

    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    driver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID(), ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    # NULL means open-ended: the vehicle stays out until a return date is set.
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus), nullable=False, default=ReservationStatus.pending, index=True
    )
    total_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="system")

    vehicle = relationship("Vehicle", back_populates="reservations", lazy="select")
    customer = relationship("Customer", lazy="select")
