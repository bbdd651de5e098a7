import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator

from rentdesk.common.validators import reject_null
from rentdesk.customers.models import CustomerType


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    debtor_number: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    customer_type: CustomerType = CustomerType.individual
    corporate_discount: Decimal | None = Field(default=None, ge=0, le=100)
    city: str | None = Field(default=None, max_length=100)
    country: str = Field(default="Nederland", max_length=100)
    notes: str | None = None


class CustomerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    debtor_number: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    customer_type: CustomerType | None = None
    corporate_discount: Decimal | None = Field(default=None, ge=0, le=100)
    city: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    @field_validator("name", "customer_type", "country")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class DriverCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    is_primary: bool = False


class DriverUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    is_primary: bool | None = None

    @field_validator("first_name", "last_name", "is_primary")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class DriverResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    is_primary: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerResponse(BaseModel):
    id: uuid.UUID
    name: str
    debtor_number: str | None
    email: str | None
    phone: str | None
    customer_type: CustomerType
    corporate_discount: Decimal | None
    city: str | None
    country: str
    notes: str | None
    drivers: list[DriverResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
