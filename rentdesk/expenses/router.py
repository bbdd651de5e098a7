import uuid
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.activity import record_activity
from rentdesk.common.pagination import PageQuery, PageSizeQuery, PaginatedResponse
from rentdesk.config import settings
from rentdesk.database import get_db
from rentdesk.dependencies import get_actor
from rentdesk.expenses.schemas import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from rentdesk.expenses.service import (
    create_expense,
    delete_expense,
    get_expense,
    get_expenses,
    get_recent_expenses,
    update_expense,
)
from rentdesk.vehicles.service import get_vehicle

router = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_expenses(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: PageQuery = 1,
    page_size: PageSizeQuery = 25,
    vehicle_id: Optional[uuid.UUID] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    expenses, total = await get_expenses(db, page, page_size, vehicle_id, category, start_date, end_date)
    items = [ExpenseResponse.model_validate(e).model_dump(mode="json") for e in expenses]
    return PaginatedResponse.create(items=items, total=total, page=page, page_size=page_size)


@router.get("/recent", response_model=list[ExpenseResponse])
async def recent_expenses(
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=100)] = settings.recent_expenses_limit,
):
    """Most recently recorded expenses across the fleet."""
    return await get_recent_expenses(db, limit)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense_detail(
    expense_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    expense = await get_expense(db, expense_id)
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_new_expense(
    data: ExpenseCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    if await get_vehicle(db, data.vehicle_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    expense = await create_expense(db, data, actor)
    await record_activity(db, "expense", expense.id, "create", data.model_dump(), actor)
    return expense


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_existing_expense(
    expense_id: uuid.UUID,
    data: ExpenseUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    expense = await get_expense(db, expense_id)
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    updated = await update_expense(db, expense, data)
    await record_activity(db, "expense", expense_id, "update", data.model_dump(exclude_unset=True), actor)
    return updated


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_expense(
    expense_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    expense = await get_expense(db, expense_id)
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    await delete_expense(db, expense)
    await record_activity(db, "expense", expense_id, "delete", actor=actor)
