import csv
import enum
import io
import re
import uuid
from datetime import date
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.activity import record_activity
from rentdesk.database import get_db
from rentdesk.dependencies import get_actor
from rentdesk.reports.catalog import DATA_SOURCES
from rentdesk.reports.engine import ReportValidationError, execute_report
from rentdesk.reports.schemas import (
    ExpenseCategoryTotal,
    ReportConfiguration,
    SavedReportCreate,
    SavedReportResponse,
    VehicleUtilization,
    column_key,
)
from rentdesk.reports.service import (
    create_saved_report,
    delete_saved_report,
    get_expenses_by_category,
    get_saved_report,
    get_saved_reports,
    get_utilization_report,
)

router = APIRouter()

MISSING_CELL = "-"


def _invalid(exc: ReportValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.problems)


def _cell(value: Any) -> str:
    if value is None:
        return MISSING_CELL
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _content_disposition(report_name: str) -> str:
    """Attachment header with an ASCII ``filename`` and the full name as RFC 5987 ``filename*``."""
    stem = report_name.strip().replace(" ", "-").lower() or "report"
    fallback = re.sub(r"[^a-z0-9_-]+", "-", stem).strip("-") or "report"
    return f"attachment; filename=\"{fallback}.csv\"; filename*=UTF-8''{quote(stem + '.csv', safe='')}"


@router.get("/catalog")
async def report_catalog():
    return [
        {
            "id": source.id,
            "name": source.name,
            "fields": [
                {
                    "table": f.table,
                    "name": f.name,
                    "label": f.label,
                    "type": f.type.value,
                    "operators": [op.value for op in f.operators],
                    "aggregatable": f.aggregatable,
                }
                for f in source.fields
            ],
        }
        for source in DATA_SOURCES
    ]


@router.post("/execute")
async def execute(
    config: ReportConfiguration,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    try:
        return await execute_report(db, config)
    except ReportValidationError as exc:
        raise _invalid(exc) from exc


@router.post("/execute/csv")
async def execute_csv(
    config: ReportConfiguration,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    try:
        rows = await execute_report(db, config)
    except ReportValidationError as exc:
        raise _invalid(exc) from exc

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([col.label or column_key(col) for col in config.columns])
    for row in rows:
        writer.writerow([_cell(row.get(column_key(col))) for col in config.columns])

    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": _content_disposition(config.name)},
    )


@router.get("/saved", response_model=list[SavedReportResponse])
async def list_saved_reports(db: Annotated[AsyncSession, Depends(get_db)]):
    return [SavedReportResponse.from_model(r) for r in await get_saved_reports(db)]


@router.get("/saved/{report_id}", response_model=SavedReportResponse)
async def get_saved_report_detail(
    report_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    report = await get_saved_report(db, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved report not found")
    return SavedReportResponse.from_model(report)


@router.post("/saved", response_model=SavedReportResponse, status_code=status.HTTP_201_CREATED)
async def save_report(
    data: SavedReportCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    try:
        report = await create_saved_report(db, data, actor)
    except ReportValidationError as exc:
        raise _invalid(exc) from exc
    await record_activity(db, "saved_report", report.id, "create", {"name": report.name}, actor)
    return SavedReportResponse.from_model(report)


@router.delete("/saved/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    report = await get_saved_report(db, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved report not found")
    name = report.name
    await delete_saved_report(db, report)
    await record_activity(db, "saved_report", report_id, "delete", {"name": name}, actor)


@router.get("/expenses-by-category", response_model=list[ExpenseCategoryTotal])
async def expenses_by_category(
    db: Annotated[AsyncSession, Depends(get_db)],
    start_date: date | None = None,
    end_date: date | None = None,
):
    return await get_expenses_by_category(db, start_date, end_date)


@router.get("/utilization", response_model=list[VehicleUtilization])
async def utilization(
    start_date: date,
    end_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    if end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")
    return await get_utilization_report(db, start_date, end_date)
