import datetime as dt
import uuid
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from rentdesk.common.validators import reject_null


class ExpenseCreate(BaseModel):
    vehicle_id: uuid.UUID
    category: str = Field(min_length=1, max_length=50)
    amount: Decimal = Field(ge=0)
    date: dt.date
    description: str | None = None
    mileage: int | None = Field(default=None, ge=0)

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str) -> str:
        return value.strip().lower()


class ExpenseUpdate(BaseModel):
    category: str | None = Field(default=None, min_length=1, max_length=50)
    amount: Decimal | None = Field(default=None, ge=0)
    date: dt.date | None = None
    description: str | None = None
    mileage: int | None = Field(default=None, ge=0)

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None

    @field_validator("category", "amount", "date")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ExpenseResponse(BaseModel):
    id: uuid.UUID
    vehicle_id: uuid.UUID
    category: str
    amount: Decimal
    date: dt.date
    description: str | None
    mileage: int | None
    created_by: str
    created_at: dt.datetime

    model_config = {"from_attributes": True}
