import uuid
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.activity import list_activity, record_activity
from rentdesk.common.pagination import PageQuery, PageSizeQuery, PaginatedResponse
from rentdesk.config import settings
from rentdesk.customers.service import get_customer, get_driver
from rentdesk.database import get_db
from rentdesk.dependencies import get_actor
from rentdesk.reservations.models import ReservationStatus
from rentdesk.reservations.schemas import (
    ActivityEntry,
    AvailableVehicle,
    ReservationCreate,
    ReservationResponse,
    ReservationStatusUpdate,
    ReservationUpdate,
)
from rentdesk.reservations.service import (
    create_reservation,
    delete_reservation,
    find_conflicts,
    get_available_vehicles,
    get_reservation,
    get_reservations,
    get_upcoming_reservations,
    set_status,
    sync_vehicle_availability,
    update_reservation,
)
from rentdesk.vehicles.service import get_vehicle

router = APIRouter()


def _conflict(conflicts: list) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Vehicle is already reserved: conflict with {len(conflicts)} existing reservation(s)",
    )


def _check_range(start: date, end: Optional[date]) -> None:
    if end is not None and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")


async def _check_references(
    db: AsyncSession,
    vehicle_id: uuid.UUID,
    customer_id: uuid.UUID,
    driver_id: Optional[uuid.UUID],
) -> None:
    # Locks the vehicle row for the rest of the transaction so that two
    # bookings of the same vehicle cannot both pass the conflict check.
    if await get_vehicle(db, vehicle_id, for_update=True) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    if await get_customer(db, customer_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    if driver_id is not None:
        driver = await get_driver(db, driver_id)
        if driver is None or driver.customer_id != customer_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found for this customer")


@router.get("", response_model=PaginatedResponse)
async def list_reservations(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: PageQuery = 1,
    page_size: PageSizeQuery = 25,
    vehicle_id: uuid.UUID | None = None,
    customer_id: uuid.UUID | None = None,
    reservation_status: ReservationStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    reservations, total = await get_reservations(
        db, page, page_size, vehicle_id, customer_id, reservation_status, start_date, end_date
    )
    items = [ReservationResponse.model_validate(r).model_dump(mode="json") for r in reservations]
    return PaginatedResponse.create(items=items, total=total, page=page, page_size=page_size)


@router.get("/check-availability", response_model=list[ReservationResponse])
async def check_availability(
    vehicle_id: uuid.UUID,
    start_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    end_date: date | None = None,
    exclude_id: uuid.UUID | None = None,
):
    """Reservations that would conflict with booking the vehicle for the range. Empty means available."""
    _check_range(start_date, end_date)
    return await find_conflicts(db, vehicle_id, start_date, end_date, exclude_id)


@router.get("/available-vehicles", response_model=list[AvailableVehicle])
async def available_vehicles(
    start_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    end_date: date | None = None,
):
    _check_range(start_date, end_date)
    return await get_available_vehicles(db, start_date, end_date)


@router.get("/upcoming", response_model=list[ReservationResponse])
async def upcoming_reservations(
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=100)] = settings.upcoming_reservations_limit,
    as_of: Optional[date] = None,
):
    return await get_upcoming_reservations(db, as_of or date.today(), limit)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation_detail(
    reservation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    reservation = await get_reservation(db, reservation_id)
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return reservation


@router.get("/{reservation_id}/activity", response_model=list[ActivityEntry])
async def reservation_activity(
    reservation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    if await get_reservation(db, reservation_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return await list_activity(db, "reservation", reservation_id)


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_new_reservation(
    data: ReservationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    await _check_references(db, data.vehicle_id, data.customer_id, data.driver_id)

    if data.status != ReservationStatus.cancelled:
        conflicts = await find_conflicts(db, data.vehicle_id, data.start_date, data.end_date)
        if conflicts:
            raise _conflict(conflicts)

    reservation = await create_reservation(db, data, actor)
    await record_activity(db, "reservation", reservation.id, "create", data.model_dump(), actor)
    return reservation


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_existing_reservation(
    reservation_id: uuid.UUID,
    data: ReservationUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    reservation = await get_reservation(db, reservation_id)
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")

    changes = data.model_dump(exclude_unset=True)
    vehicle_id = changes.get("vehicle_id") or reservation.vehicle_id
    customer_id = changes.get("customer_id") or reservation.customer_id
    driver_id = changes["driver_id"] if "driver_id" in changes else reservation.driver_id
    start = changes.get("start_date") or reservation.start_date
    end = changes["end_date"] if "end_date" in changes else reservation.end_date
    _check_range(start, end)

    await _check_references(db, vehicle_id, customer_id, driver_id)
    if reservation.status != ReservationStatus.cancelled:
        conflicts = await find_conflicts(db, vehicle_id, start, end, exclude_id=reservation_id)
        if conflicts:
            raise _conflict(conflicts)

    updated = await update_reservation(db, reservation, data)
    await record_activity(db, "reservation", reservation_id, "update", changes, actor)
    return updated


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
async def change_reservation_status(
    reservation_id: uuid.UUID,
    data: ReservationStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    reservation = await get_reservation(db, reservation_id)
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")

    previous = reservation.status
    # Reviving a cancelled booking has to claim its dates again
    if previous == ReservationStatus.cancelled and data.status != ReservationStatus.cancelled:
        await get_vehicle(db, reservation.vehicle_id, for_update=True)
        conflicts = await find_conflicts(
            db, reservation.vehicle_id, reservation.start_date, reservation.end_date, exclude_id=reservation_id
        )
        if conflicts:
            raise _conflict(conflicts)

    updated = await set_status(db, reservation, data.status)
    await sync_vehicle_availability(db, updated)
    await record_activity(
        db, "reservation", reservation_id, "status_change",
        {"from": previous.value, "to": data.status.value}, actor,
    )
    return updated


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_reservation(
    reservation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    reservation = await get_reservation(db, reservation_id)
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    await delete_reservation(db, reservation)
    await record_activity(db, "reservation", reservation_id, "delete", actor=actor)
