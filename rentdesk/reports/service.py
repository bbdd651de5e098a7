import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.dates import DateRange
from rentdesk.expenses.models import Expense
from rentdesk.reports.engine import validate_configuration
from rentdesk.reports.models import SavedReport
from rentdesk.reports.schemas import (
    ExpenseCategoryTotal,
    SavedReportCreate,
    VehicleUtilization,
)
from rentdesk.reservations.models import Reservation, ReservationStatus
from rentdesk.vehicles.models import Vehicle

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Saved reports
# ---------------------------------------------------------------------------


async def get_saved_reports(db: AsyncSession) -> list[SavedReport]:
    result = await db.execute(select(SavedReport).order_by(SavedReport.created_at.desc(), SavedReport.name.asc()))
    return list(result.scalars().all())


async def get_saved_report(db: AsyncSession, report_id: uuid.UUID) -> Optional[SavedReport]:
    result = await db.execute(select(SavedReport).where(SavedReport.id == report_id))
    return result.scalar_one_or_none()


async def create_saved_report(db: AsyncSession, data: SavedReportCreate, created_by: str) -> SavedReport:
    # Only runnable configurations are stored
    validate_configuration(data)
    configuration = data.to_wire()
    report = SavedReport(
        name=data.name,
        description=data.description,
        configuration=configuration,
        created_by=created_by,
    )
    db.add(report)
    await db.flush()
    await db.refresh(report)
    logger.info("Saved report '%s' (%s) for %s", report.name, report.id, created_by)
    return report


async def delete_saved_report(db: AsyncSession, report: SavedReport) -> None:
    await db.delete(report)
    await db.flush()


# ---------------------------------------------------------------------------
# Fixed reports
# ---------------------------------------------------------------------------


async def get_expenses_by_category(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[ExpenseCategoryTotal]:
    query = select(
        Expense.category,
        func.coalesce(func.sum(Expense.amount), 0).label("total_amount"),
        func.count(Expense.id).label("expense_count"),
    )
    if start_date:
        query = query.where(Expense.date >= start_date)
    if end_date:
        query = query.where(Expense.date <= end_date)
    query = query.group_by(Expense.category).order_by(func.sum(Expense.amount).desc())

    result = await db.execute(query)
    return [
        ExpenseCategoryTotal(
            category=row.category,
            total_amount=Decimal(str(row.total_amount)).quantize(Decimal("0.01")),
            expense_count=row.expense_count,
        )
        for row in result.all()
    ]


async def get_utilization_report(db: AsyncSession, start_date: date, end_date: date) -> list[VehicleUtilization]:
    """Share of calendar days in the window on which each vehicle is held by a live reservation."""
    window = DateRange(start_date, end_date)

    vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.license_plate.asc()))).scalars().all()
    reservations = (
        await db.execute(
            select(Reservation).where(
                Reservation.status != ReservationStatus.cancelled,
                Reservation.start_date <= end_date,
                or_(Reservation.end_date.is_(None), Reservation.end_date >= start_date),
            )
        )
    ).scalars().all()

    covered: dict[uuid.UUID, set[date]] = {}
    for reservation in reservations:
        # Open-ended rentals hold the vehicle until the end of the window
        held = DateRange(reservation.start_date, reservation.end_date or end_date)
        overlap = held.intersection(window)
        if overlap is not None:
            covered.setdefault(reservation.vehicle_id, set()).update(overlap.iter_days())

    report = []
    for vehicle in vehicles:
        reserved = len(covered.get(vehicle.id, ()))
        report.append(
            VehicleUtilization(
                vehicle_id=vehicle.id,
                license_plate=vehicle.license_plate,
                reserved_days=reserved,
                total_days=window.days,
                utilization_rate=round(reserved / window.days * 100, 2),
            )
        )
    return report
