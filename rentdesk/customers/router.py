import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.activity import record_activity
from rentdesk.common.pagination import PageQuery, PageSizeQuery, PaginatedResponse
from rentdesk.customers.models import CustomerType
from rentdesk.customers.schemas import (
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
    DriverCreate,
    DriverResponse,
    DriverUpdate,
)
from rentdesk.customers.service import (
    create_customer,
    create_driver,
    delete_customer,
    delete_driver,
    get_customer,
    get_customers,
    get_driver,
    get_drivers,
    update_customer,
    update_driver,
)
from rentdesk.database import get_db
from rentdesk.dependencies import get_actor
from rentdesk.reservations.service import count_reservations_for_customer

router = APIRouter()


async def _get_customer_or_404(db: AsyncSession, customer_id: uuid.UUID):
    customer = await get_customer(db, customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


async def _get_driver_or_404(db: AsyncSession, customer_id: uuid.UUID, driver_id: uuid.UUID):
    driver = await get_driver(db, driver_id)
    if driver is None or driver.customer_id != customer_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")
    return driver


@router.get("", response_model=PaginatedResponse)
async def list_customers(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: PageQuery = 1,
    page_size: PageSizeQuery = 25,
    search: Optional[str] = None,
    customer_type: Optional[CustomerType] = None,
):
    customers, total = await get_customers(db, page, page_size, search, customer_type)
    items = [CustomerResponse.model_validate(c).model_dump(mode="json") for c in customers]
    return PaginatedResponse.create(items=items, total=total, page=page, page_size=page_size)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer_detail(
    customer_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return await _get_customer_or_404(db, customer_id)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_new_customer(
    data: CustomerCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    customer = await create_customer(db, data)
    await record_activity(db, "customer", customer.id, "create", data.model_dump(), actor)
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_existing_customer(
    customer_id: uuid.UUID,
    data: CustomerUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    customer = await _get_customer_or_404(db, customer_id)
    updated = await update_customer(db, customer, data)
    await record_activity(db, "customer", customer_id, "update", data.model_dump(exclude_unset=True), actor)
    return updated


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_customer(
    customer_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    customer = await _get_customer_or_404(db, customer_id)
    if await count_reservations_for_customer(db, customer_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Customer has reservations and cannot be deleted",
        )
    await delete_customer(db, customer)
    await record_activity(db, "customer", customer_id, "delete", actor=actor)


# ── Drivers ──────────────────────────────────────────────────────────


@router.get("/{customer_id}/drivers", response_model=list[DriverResponse])
async def list_customer_drivers(
    customer_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await _get_customer_or_404(db, customer_id)
    return await get_drivers(db, customer_id)


@router.post("/{customer_id}/drivers", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def add_customer_driver(
    customer_id: uuid.UUID,
    data: DriverCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    customer = await _get_customer_or_404(db, customer_id)
    driver = await create_driver(db, customer, data)
    await record_activity(db, "driver", driver.id, "create", data.model_dump(), actor)
    return driver


@router.put("/{customer_id}/drivers/{driver_id}", response_model=DriverResponse)
async def update_customer_driver(
    customer_id: uuid.UUID,
    driver_id: uuid.UUID,
    data: DriverUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    driver = await _get_driver_or_404(db, customer_id, driver_id)
    updated = await update_driver(db, driver, data)
    await record_activity(db, "driver", driver_id, "update", data.model_dump(exclude_unset=True), actor)
    return updated


@router.delete("/{customer_id}/drivers/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_customer_driver(
    customer_id: uuid.UUID,
    driver_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    driver = await _get_driver_or_404(db, customer_id, driver_id)
    await delete_driver(db, driver)
    await record_activity(db, "driver", driver_id, "delete", actor=actor)
