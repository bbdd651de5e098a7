import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from rentdesk.common.validators import reject_null
from rentdesk.vehicles.models import AvailabilityStatus


def _normalize_plate(value: str) -> str:
    return value.strip().upper()


class VehicleCreate(BaseModel):
    license_plate: str = Field(min_length=1, max_length=20)
    brand: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    vehicle_type: str | None = Field(default=None, max_length=50)
    fuel: str | None = Field(default=None, max_length=30)
    monthly_price: Decimal | None = Field(default=None, ge=0)
    daily_price: Decimal | None = Field(default=None, ge=0)
    current_mileage: int | None = Field(default=None, ge=0)
    apk_date: date | None = None
    warranty_end_date: date | None = None
    maintenance_status: str | None = Field(default=None, max_length=30)
    gps: bool = False
    availability_status: AvailabilityStatus = AvailabilityStatus.available
    remarks: str | None = None

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, value: str) -> str:
        return _normalize_plate(value)


class VehicleUpdate(BaseModel):
    license_plate: str | None = Field(default=None, min_length=1, max_length=20)
    brand: str | None = Field(default=None, min_length=1, max_length=100)
    model: str | None = Field(default=None, min_length=1, max_length=100)
    vehicle_type: str | None = Field(default=None, max_length=50)
    fuel: str | None = Field(default=None, max_length=30)
    monthly_price: Decimal | None = Field(default=None, ge=0)
    daily_price: Decimal | None = Field(default=None, ge=0)
    current_mileage: int | None = Field(default=None, ge=0)
    apk_date: date | None = None
    warranty_end_date: date | None = None
    maintenance_status: str | None = Field(default=None, max_length=30)
    gps: bool | None = None
    availability_status: AvailabilityStatus | None = None
    remarks: str | None = None

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, value: str | None) -> str | None:
        return _normalize_plate(value) if value is not None else None

    @field_validator("license_plate", "brand", "model", "gps", "availability_status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class VehicleResponse(BaseModel):
    id: uuid.UUID
    license_plate: str
    brand: str
    model: str
    vehicle_type: str | None
    fuel: str | None
    monthly_price: Decimal | None
    daily_price: Decimal | None
    current_mileage: int | None
    apk_date: date | None
    warranty_end_date: date | None
    maintenance_status: str | None
    gps: bool
    availability_status: AvailabilityStatus
    remarks: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
