import uuid
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.pagination import page_offset
from rentdesk.vehicles.models import AvailabilityStatus, Vehicle
from rentdesk.vehicles.schemas import VehicleCreate, VehicleUpdate


async def get_vehicles(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 25,
    search: Optional[str] = None,
    availability_status: Optional[AvailabilityStatus] = None,
) -> tuple[list[Vehicle], int]:
    query = select(Vehicle)
    count_query = select(func.count(Vehicle.id))

    if search:
        search_filter = or_(
            Vehicle.license_plate.ilike(f"%{search}%"),
            Vehicle.brand.ilike(f"%{search}%"),
            Vehicle.model.ilike(f"%{search}%"),
        )
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    if availability_status:
        query = query.where(Vehicle.availability_status == availability_status)
        count_query = count_query.where(Vehicle.availability_status == availability_status)

    total = (await db.execute(count_query)).scalar_one()
    offset = page_offset(page, page_size)
    result = await db.execute(query.order_by(Vehicle.license_plate.asc()).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def get_vehicle(db: AsyncSession, vehicle_id: uuid.UUID, *, for_update: bool = False) -> Optional[Vehicle]:
    query = select(Vehicle).where(Vehicle.id == vehicle_id)
    if for_update:
        # Serializes concurrent bookings of the same vehicle on PostgreSQL; no-op on SQLite.
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_vehicle_by_plate(db: AsyncSession, license_plate: str) -> Optional[Vehicle]:
    result = await db.execute(select(Vehicle).where(Vehicle.license_plate == license_plate.strip().upper()))
    return result.scalar_one_or_none()


async def _expiring_within(db: AsyncSession, column, today: date, within_days: int) -> list[Vehicle]:
    # Dates on or before today are overdue and left out
    horizon = today + timedelta(days=within_days)
    result = await db.execute(
        select(Vehicle).where(column.is_not(None), column > today, column <= horizon).order_by(column.asc())
    )
    return list(result.scalars().all())


async def get_apk_expiring(db: AsyncSession, today: date, within_days: int) -> list[Vehicle]:
    """Vehicles whose APK inspection falls due in (today, today + within_days]."""
    return await _expiring_within(db, Vehicle.apk_date, today, within_days)


async def get_warranty_expiring(db: AsyncSession, today: date, within_days: int) -> list[Vehicle]:
    return await _expiring_within(db, Vehicle.warranty_end_date, today, within_days)


async def create_vehicle(db: AsyncSession, data: VehicleCreate) -> Vehicle:
    vehicle = Vehicle(**data.model_dump())
    db.add(vehicle)
    await db.flush()
    await db.refresh(vehicle)
    return vehicle


async def update_vehicle(db: AsyncSession, vehicle: Vehicle, data: VehicleUpdate) -> Vehicle:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(vehicle, field, value)
    await db.flush()
    await db.refresh(vehicle)
    return vehicle


async def delete_vehicle(db: AsyncSession, vehicle: Vehicle) -> None:
    await db.delete(vehicle)
    await db.flush()
