import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rentdesk.reports.catalog import AggregationFunction


class ReportColumn(BaseModel):
    field: str
    table: str
    label: str = ""
    aggregation: Optional[AggregationFunction] = None


class ReportFilter(BaseModel):
    table: str
    field: str
    # Kept as a plain string so that an unknown operator is reported with the
    # other configuration problems instead of as a schema error.
    operator: str
    value: Any = None
    value2: Any = None


class ReportGrouping(BaseModel):
    field: str
    table: str


class ReportOrder(BaseModel):
    field: str
    table: str
    aggregation: Optional[AggregationFunction] = None
    direction: Literal["asc", "desc"] = "asc"


class ReportConfiguration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    description: Optional[str] = None
    data_sources: list[str] = Field(default_factory=list, alias="dataSources")
    columns: list[ReportColumn] = Field(default_factory=list)
    filters: list[ReportFilter] = Field(default_factory=list)
    group_by: list[ReportGrouping] = Field(default_factory=list, alias="groupBy")
    order_by: list[ReportOrder] = Field(default_factory=list, alias="orderBy")
    limit: Optional[int] = Field(default=None, ge=1)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SavedReportCreate(ReportConfiguration):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Report name is required")
        return v


class SavedReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    configuration: ReportConfiguration
    created_by: str = Field(alias="createdBy")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_model(cls, report) -> "SavedReportResponse":
        return cls(
            id=report.id,
            name=report.name,
            description=report.description,
            configuration=ReportConfiguration.model_validate(report.configuration),
            created_by=report.created_by,
            created_at=report.created_at,
        )


class ExpenseCategoryTotal(BaseModel):
    category: str
    total_amount: Decimal
    expense_count: int


class VehicleUtilization(BaseModel):
    vehicle_id: uuid.UUID
    license_plate: str
    reserved_days: int
    total_days: int
    utilization_rate: float  # reserved / total as percentage


def column_key(column: ReportColumn) -> str:
    """Key of the column in every result row: the field name, or ``sum_amount`` style for aggregates."""
    if column.aggregation is None:
        return column.field
    return f"{column.aggregation.value.lower()}_{column.field}"
