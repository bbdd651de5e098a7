import enum
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentdesk.common.base_models import GUID, TimestampMixin, UUIDBase


class CustomerType(str, enum.Enum):
    individual = "individual"
    business = "business"


class Customer(UUIDBase, TimestampMixin):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    debtor_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    customer_type: Mapped[CustomerType] = mapped_column(
        Enum(CustomerType), nullable=False, default=CustomerType.individual
    )
    corporate_discount: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="Nederland")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    drivers = relationship(
        "Driver", back_populates="customer", lazy="selectin", cascade="all, delete-orphan", passive_deletes=True
    )


class Driver(UUIDBase, TimestampMixin):
    __tablename__ = "drivers"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    customer = relationship("Customer", back_populates="drivers")
