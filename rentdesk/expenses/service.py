import uuid
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.pagination import page_offset
from rentdesk.expenses.models import Expense
from rentdesk.expenses.schemas import ExpenseCreate, ExpenseUpdate


async def get_expenses(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 25,
    vehicle_id: Optional[uuid.UUID] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> tuple[list[Expense], int]:
    query = select(Expense)
    count_query = select(func.count(Expense.id))

    if vehicle_id:
        query = query.where(Expense.vehicle_id == vehicle_id)
        count_query = count_query.where(Expense.vehicle_id == vehicle_id)
    if category:
        query = query.where(Expense.category == category.strip().lower())
        count_query = count_query.where(Expense.category == category.strip().lower())
    if start_date:
        query = query.where(Expense.date >= start_date)
        count_query = count_query.where(Expense.date >= start_date)
    if end_date:
        query = query.where(Expense.date <= end_date)
        count_query = count_query.where(Expense.date <= end_date)

    total = (await db.execute(count_query)).scalar_one()
    offset = page_offset(page, page_size)
    result = await db.execute(
        query.order_by(Expense.date.desc(), Expense.created_at.desc()).offset(offset).limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_expense(db: AsyncSession, expense_id: uuid.UUID) -> Optional[Expense]:
    result = await db.execute(select(Expense).where(Expense.id == expense_id))
    return result.scalar_one_or_none()


async def create_expense(db: AsyncSession, data: ExpenseCreate, created_by: str) -> Expense:
    expense = Expense(**data.model_dump(), created_by=created_by)
    db.add(expense)
    await db.flush()
    await db.refresh(expense)
    return expense


async def update_expense(db: AsyncSession, expense: Expense, data: ExpenseUpdate) -> Expense:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(expense, field, value)
    await db.flush()
    await db.refresh(expense)
    return expense


async def delete_expense(db: AsyncSession, expense: Expense) -> None:
    await db.delete(expense)
    await db.flush()


async def get_recent_expenses(db: AsyncSession, limit: int) -> list[Expense]:
    result = await db.execute(select(Expense).order_by(Expense.created_at.desc(), Expense.date.desc()).limit(limit))
    return list(result.scalars().all())
