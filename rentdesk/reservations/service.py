import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.dates import overlaps
from rentdesk.common.pagination import page_offset
from rentdesk.config import settings
from rentdesk.reservations.models import Reservation, ReservationStatus
from rentdesk.reservations.schemas import ReservationCreate, ReservationUpdate
from rentdesk.vehicles.models import AvailabilityStatus, Vehicle

logger = logging.getLogger(__name__)

# Stand-in end date for open-ended rentals.
OPEN_ENDED = date.max

VEHICLE_STATUS_BY_RESERVATION = {
    ReservationStatus.picked_up: AvailabilityStatus.rented,
    ReservationStatus.returned: AvailabilityStatus.available,
    ReservationStatus.completed: AvailabilityStatus.available,
    ReservationStatus.cancelled: AvailabilityStatus.available,
}


def _overlap_candidates(start: date, end: date):
    """Coarse, always-inclusive SQL cut; the boundary policy is applied afterwards."""
    return (
        Reservation.status != ReservationStatus.cancelled,
        Reservation.start_date <= end,
        or_(Reservation.end_date.is_(None), Reservation.end_date >= start),
    )


def _apply_policy(rows, start: date, end: date, inclusive: bool) -> list[Reservation]:
    return [
        r
        for r in rows
        if overlaps(start, end, r.start_date, r.end_date or OPEN_ENDED, inclusive=inclusive)
    ]


async def find_conflicts(
    db: AsyncSession,
    vehicle_id: uuid.UUID,
    start: date,
    end: Optional[date],
    exclude_id: Optional[uuid.UUID] = None,
    inclusive: Optional[bool] = None,
) -> list[Reservation]:
    """Non-cancelled reservations of ``vehicle_id`` that collide with [start, end].

    ``end=None`` means the candidate is open-ended. ``exclude_id`` skips the
    reservation being edited.
    """
    if inclusive is None:
        inclusive = settings.same_day_turnover_is_conflict
    effective_end = end or OPEN_ENDED

    query = select(Reservation).where(Reservation.vehicle_id == vehicle_id, *_overlap_candidates(start, effective_end))
    if exclude_id:
        query = query.where(Reservation.id != exclude_id)
    result = await db.execute(query.order_by(Reservation.start_date.asc()))
    return _apply_policy(result.scalars().all(), start, effective_end, inclusive)


async def get_available_vehicles(db: AsyncSession, start: date, end: Optional[date]) -> list[Vehicle]:
    effective_end = end or OPEN_ENDED
    busy_result = await db.execute(select(Reservation).where(*_overlap_candidates(start, effective_end)))
    busy = _apply_policy(busy_result.scalars().all(), start, effective_end, settings.same_day_turnover_is_conflict)
    busy_ids = {r.vehicle_id for r in busy}

    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.availability_status.not_in([AvailabilityStatus.maintenance, AvailabilityStatus.out_of_service]))
        .order_by(Vehicle.license_plate.asc())
    )
    return [v for v in result.scalars().all() if v.id not in busy_ids]


async def get_reservations(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 25,
    vehicle_id: Optional[uuid.UUID] = None,
    customer_id: Optional[uuid.UUID] = None,
    status: Optional[ReservationStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> tuple[list[Reservation], int]:
    query = select(Reservation)
    count_query = select(func.count(Reservation.id))

    filters = []
    if vehicle_id:
        filters.append(Reservation.vehicle_id == vehicle_id)
    if customer_id:
        filters.append(Reservation.customer_id == customer_id)
    if status:
        filters.append(Reservation.status == status)
    # Window filter keeps every reservation that touches [start_date, end_date]
    if end_date:
        filters.append(Reservation.start_date <= end_date)
    if start_date:
        filters.append(or_(Reservation.end_date.is_(None), Reservation.end_date >= start_date))

    if filters:
        query = query.where(*filters)
        count_query = count_query.where(*filters)

    total = (await db.execute(count_query)).scalar_one()
    offset = page_offset(page, page_size)
    result = await db.execute(query.order_by(Reservation.start_date.desc()).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def get_reservation(db: AsyncSession, reservation_id: uuid.UUID) -> Optional[Reservation]:
    result = await db.execute(select(Reservation).where(Reservation.id == reservation_id))
    return result.scalar_one_or_none()


async def count_reservations_for_vehicle(db: AsyncSession, vehicle_id: uuid.UUID) -> int:
    result = await db.execute(select(func.count(Reservation.id)).where(Reservation.vehicle_id == vehicle_id))
    return result.scalar_one()


async def count_reservations_for_customer(db: AsyncSession, customer_id: uuid.UUID) -> int:
    result = await db.execute(select(func.count(Reservation.id)).where(Reservation.customer_id == customer_id))
    return result.scalar_one()


async def create_reservation(db: AsyncSession, data: ReservationCreate, created_by: str) -> Reservation:
    reservation = Reservation(**data.model_dump(), created_by=created_by)
    db.add(reservation)
    await db.flush()
    await db.refresh(reservation)
    return reservation


async def update_reservation(db: AsyncSession, reservation: Reservation, data: ReservationUpdate) -> Reservation:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(reservation, field, value)
    await db.flush()
    await db.refresh(reservation)
    return reservation


async def set_status(db: AsyncSession, reservation: Reservation, status: ReservationStatus) -> Reservation:
    reservation.status = status
    await db.flush()
    await db.refresh(reservation)
    return reservation


async def sync_vehicle_availability(db: AsyncSession, reservation: Reservation) -> Optional[AvailabilityStatus]:
    """Mirror a pickup/return on the vehicle record.

    Failing here must not undo the status change that triggered it, so the
    write runs in a savepoint and errors are logged and dropped.
    """
    target = VEHICLE_STATUS_BY_RESERVATION.get(reservation.status)
    if target is None:
        return None
    try:
        async with db.begin_nested():
            vehicle = await db.get(Vehicle, reservation.vehicle_id)
            if vehicle is None:
                return None
            vehicle.availability_status = target
    except SQLAlchemyError:
        logger.exception(
            "Could not set vehicle %s to %s after reservation %s became %s",
            reservation.vehicle_id,
            target.value,
            reservation.id,
            reservation.status.value,
        )
        return None
    return target


async def delete_reservation(db: AsyncSession, reservation: Reservation) -> None:
    await db.delete(reservation)
    await db.flush()


async def get_upcoming_reservations(db: AsyncSession, today: date, limit: int) -> list[Reservation]:
    """Next live reservations starting today or later, soonest first."""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.start_date >= today, Reservation.status != ReservationStatus.cancelled)
        .order_by(Reservation.start_date.asc(), Reservation.created_at.asc())
        .limit(limit)
    )
    return list(result.scalars().all())
