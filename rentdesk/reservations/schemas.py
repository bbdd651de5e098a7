import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from rentdesk.common.validators import reject_null
from rentdesk.reservations.models import ReservationStatus


class ReservationCreate(BaseModel):
    vehicle_id: uuid.UUID
    customer_id: uuid.UUID
    driver_id: uuid.UUID | None = None
    start_date: date
    end_date: date | None = None
    status: ReservationStatus = ReservationStatus.pending
    total_price: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None

    @model_validator(mode="after")
    def check_range(self) -> "ReservationCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ReservationUpdate(BaseModel):
    vehicle_id: uuid.UUID | None = None
    customer_id: uuid.UUID | None = None
    driver_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    total_price: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("vehicle_id", "customer_id", "start_date")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationResponse(BaseModel):
    id: uuid.UUID
    vehicle_id: uuid.UUID
    customer_id: uuid.UUID
    driver_id: uuid.UUID | None
    start_date: date
    end_date: date | None
    status: ReservationStatus
    total_price: Decimal | None
    notes: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AvailableVehicle(BaseModel):
    id: uuid.UUID
    license_plate: str
    brand: str
    model: str
    daily_price: Decimal | None

    model_config = {"from_attributes": True}


class ActivityEntry(BaseModel):
    action: str
    changes_json: str | None
    actor: str
    timestamp: datetime

    model_config = {"from_attributes": True}
