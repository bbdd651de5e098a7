import uuid
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.pagination import page_offset
from rentdesk.customers.models import Customer, CustomerType, Driver
from rentdesk.customers.schemas import CustomerCreate, CustomerUpdate, DriverCreate, DriverUpdate


async def get_customers(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 25,
    search: Optional[str] = None,
    customer_type: Optional[CustomerType] = None,
) -> tuple[list[Customer], int]:
    query = select(Customer)
    count_query = select(func.count(Customer.id))

    if search:
        search_filter = or_(
            Customer.name.ilike(f"%{search}%"),
            Customer.debtor_number.ilike(f"%{search}%"),
            Customer.email.ilike(f"%{search}%"),
        )
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    if customer_type:
        query = query.where(Customer.customer_type == customer_type)
        count_query = count_query.where(Customer.customer_type == customer_type)

    total = (await db.execute(count_query)).scalar_one()
    offset = page_offset(page, page_size)
    result = await db.execute(query.order_by(Customer.name.asc()).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def get_customer(db: AsyncSession, customer_id: uuid.UUID) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    return result.scalar_one_or_none()


async def create_customer(db: AsyncSession, data: CustomerCreate) -> Customer:
    customer = Customer(**data.model_dump())
    db.add(customer)
    await db.flush()
    await db.refresh(customer)
    return customer


async def update_customer(db: AsyncSession, customer: Customer, data: CustomerUpdate) -> Customer:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    await db.flush()
    await db.refresh(customer)
    return customer


async def delete_customer(db: AsyncSession, customer: Customer) -> None:
    await db.delete(customer)
    await db.flush()


# ── Drivers ──────────────────────────────────────────────────────────


async def get_driver(db: AsyncSession, driver_id: uuid.UUID) -> Optional[Driver]:
    result = await db.execute(select(Driver).where(Driver.id == driver_id))
    return result.scalar_one_or_none()


async def get_drivers(db: AsyncSession, customer_id: uuid.UUID) -> list[Driver]:
    result = await db.execute(
        select(Driver)
        .where(Driver.customer_id == customer_id)
        .order_by(Driver.is_primary.desc(), Driver.last_name.asc())
    )
    return list(result.scalars().all())


async def _clear_primary(db: AsyncSession, customer_id: uuid.UUID) -> None:
    await db.execute(update(Driver).where(Driver.customer_id == customer_id).values(is_primary=False))


async def create_driver(db: AsyncSession, customer: Customer, data: DriverCreate) -> Driver:
    # A customer has at most one primary driver
    if data.is_primary:
        await _clear_primary(db, customer.id)
    driver = Driver(**data.model_dump(), customer_id=customer.id)
    db.add(driver)
    await db.flush()
    await db.refresh(driver)
    return driver


async def update_driver(db: AsyncSession, driver: Driver, data: DriverUpdate) -> Driver:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("is_primary"):
        await _clear_primary(db, driver.customer_id)
    for field, value in changes.items():
        setattr(driver, field, value)
    await db.flush()
    await db.refresh(driver)
    return driver


async def delete_driver(db: AsyncSession, driver: Driver) -> None:
    await db.delete(driver)
    await db.flush()
