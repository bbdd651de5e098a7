"""
Report builder session.

Holds an in-progress ``ReportConfiguration`` and drives the two independent
flows around it:

    run:  IDLE -> CONFIGURING -> EXECUTING -> RESULTS_SHOWN | EXECUTION_FAILED
    save: IDLE -> SAVING -> SAVED | SAVE_FAILED

Everything that can be checked locally (catalog membership, operators,
filter values, required columns and name) is checked before a request is
made. Each network action refuses to start while the previous call of the
same action is still pending.
"""

import enum
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Optional

from rentdesk.client.api import RentDeskClient
from rentdesk.reports import catalog
from rentdesk.reports.catalog import LIST_OPERATORS, AggregationFunction
from rentdesk.reports.engine import ResolvedFilter, resolve_filter
from rentdesk.reports.schemas import (
    ReportColumn,
    ReportConfiguration,
    ReportFilter,
    ReportGrouping,
    ReportOrder,
    SavedReportResponse,
    column_key,
)
from rentdesk.reports.values import to_wire

logger = logging.getLogger(__name__)

MISSING_CELL = "-"


class RunState(str, enum.Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    EXECUTING = "executing"
    RESULTS_SHOWN = "results_shown"
    EXECUTION_FAILED = "execution_failed"


class SaveState(str, enum.Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


class BuilderValidationError(Exception):
    pass


class RequestInFlightError(Exception):
    def __init__(self, action: str):
        self.action = action
        super().__init__(f"A {action} request is already in progress")


def _filter_to_wire(flt: ResolvedFilter) -> ReportFilter:
    if flt.operator in LIST_OPERATORS:
        value: Any = ",".join(str(to_wire(v)) for v in flt.values)
    else:
        value = to_wire(flt.value) if flt.value is not None else None
    return ReportFilter(
        table=flt.field.table,
        field=flt.field.name,
        operator=flt.operator.value,
        value=value,
        value2=to_wire(flt.value2) if flt.value2 is not None else None,
    )


class ReportBuilder:
    def __init__(self, client: RentDeskClient):
        self.client = client
        self.name = ""
        self.description: Optional[str] = None
        self.data_sources: list[str] = []
        self.columns: list[ReportColumn] = []
        self.filters: list[ResolvedFilter] = []
        self.group_by: list[ReportGrouping] = []
        self.order_by: list[ReportOrder] = []
        self.limit: Optional[int] = None

        self.run_state = RunState.IDLE
        self.save_state = SaveState.IDLE
        self.results: list[dict] = []
        self.last_error: Optional[Exception] = None
        self.saved_reports: list[SavedReportResponse] = []
        self._in_flight: set[str] = set()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        if self.run_state != RunState.EXECUTING:
            self.run_state = RunState.CONFIGURING

    def _field(self, table: str, field: str) -> catalog.CatalogField:
        found = catalog.get_field(table, field)
        if found is None:
            raise BuilderValidationError(f"Unknown field {table}.{field}")
        return found

    def add_data_source(self, table: str) -> None:
        if catalog.get_data_source(table) is None:
            raise BuilderValidationError(f"Unknown data source '{table}'")
        if table not in self.data_sources:
            self.data_sources.append(table)
        self._touch()

    def remove_data_source(self, table: str) -> None:
        self.data_sources.remove(table)
        self._touch()

    def add_column(
        self,
        field: str,
        table: str,
        label: Optional[str] = None,
        aggregation: Optional[AggregationFunction] = None,
    ) -> ReportColumn:
        """Append a column. The same field may be added more than once."""
        found = self._field(table, field)
        if aggregation is not None:
            aggregation = AggregationFunction(aggregation)
            if aggregation in catalog.NUMERIC_AGGREGATIONS and not found.aggregatable:
                raise BuilderValidationError(f"{aggregation.value} cannot be applied to {table}.{field}")
        column = ReportColumn(field=field, table=table, label=label or found.label, aggregation=aggregation)
        key = column_key(column)
        for existing in self.columns:
            if column_key(existing) == key and existing.table != table:
                raise BuilderValidationError(
                    f"{table}.{field} would share the result key '{key}' with {existing.table}.{existing.field}"
                )
        if table not in self.data_sources:
            self.add_data_source(table)
        self.columns.append(column)
        self._touch()
        return column

    def remove_column(self, index: int) -> None:
        del self.columns[index]
        self._touch()

    def add_filter(self, field: str, table: str, operator: str, value: Any = None, value2: Any = None) -> ResolvedFilter:
        found = self._field(table, field)
        try:
            resolved = resolve_filter(found, operator, value, value2)
        except ValueError as exc:
            raise BuilderValidationError(f"Filter on {table}.{field}: {exc}") from exc
        self.filters.append(resolved)
        self._touch()
        return resolved

    def remove_filter(self, index: int) -> None:
        del self.filters[index]
        self._touch()

    def add_grouping(self, field: str, table: str) -> ReportGrouping:
        self._field(table, field)
        grouping = ReportGrouping(field=field, table=table)
        self.group_by.append(grouping)
        self._touch()
        return grouping

    def remove_grouping(self, index: int) -> None:
        del self.group_by[index]
        self._touch()

    def add_ordering(self, field: str, table: str, direction: str = "asc", aggregation=None) -> ReportOrder:
        self._field(table, field)
        order = ReportOrder(field=field, table=table, direction=direction, aggregation=aggregation)
        self.order_by.append(order)
        self._touch()
        return order

    def configuration(self) -> ReportConfiguration:
        return ReportConfiguration(
            name=self.name,
            description=self.description,
            data_sources=list(self.data_sources),
            columns=list(self.columns),
            filters=[_filter_to_wire(f) for f in self.filters],
            group_by=list(self.group_by),
            order_by=list(self.order_by),
            limit=self.limit,
        )

    def load(self, saved: SavedReportResponse) -> None:
        """Replace the whole configuration with a saved report's. Nothing of the current one is kept."""
        config = saved.configuration
        filters = []
        for flt in config.filters:
            found = self._field(flt.table, flt.field)
            try:
                filters.append(resolve_filter(found, flt.operator, flt.value, flt.value2))
            except ValueError as exc:
                raise BuilderValidationError(f"Saved filter on {flt.table}.{flt.field}: {exc}") from exc

        self.name = saved.name
        self.description = saved.description
        self.data_sources = list(config.data_sources)
        self.columns = [c.model_copy() for c in config.columns]
        self.filters = filters
        self.group_by = [g.model_copy() for g in config.group_by]
        self.order_by = [o.model_copy() for o in config.order_by]
        self.limit = config.limit
        self.results = []
        self.last_error = None
        self.run_state = RunState.CONFIGURING
        self.save_state = SaveState.IDLE

    # ------------------------------------------------------------------
    # Network actions
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, action: str):
        if action in self._in_flight:
            raise RequestInFlightError(action)
        self._in_flight.add(action)
        try:
            yield
        finally:
            self._in_flight.discard(action)

    def is_pending(self, action: str) -> bool:
        return action in self._in_flight

    async def run(self) -> list[dict]:
        if not self.columns:
            raise BuilderValidationError("Select at least one column")
        if not self.data_sources:
            raise BuilderValidationError("Select at least one data source")

        with self._exclusive("run"):
            self.run_state = RunState.EXECUTING
            try:
                rows = await self.client.execute_report(self.configuration())
            except Exception as exc:
                self.run_state = RunState.EXECUTION_FAILED
                self.last_error = exc
                raise
            self.results = rows
            self.last_error = None
            self.run_state = RunState.RESULTS_SHOWN
            return rows

    def result_table(self) -> tuple[list[str], list[list[Any]]]:
        """Column labels and one list of cells per row; absent cells become ``-``."""
        headers = [col.label or column_key(col) for col in self.columns]
        keys = [column_key(col) for col in self.columns]
        rows = []
        for row in self.results:
            cells = []
            for key in keys:
                value = row.get(key)
                cells.append(MISSING_CELL if value is None else value)
            rows.append(cells)
        return headers, rows

    async def save(self, name: Optional[str] = None, description: Optional[str] = None) -> SavedReportResponse:
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if not self.name.strip():
            raise BuilderValidationError("Report name is required")
        if not self.columns:
            raise BuilderValidationError("Select at least one column")

        with self._exclusive("save"):
            self.save_state = SaveState.SAVING
            try:
                saved = await self.client.save_report(self.configuration())
            except Exception as exc:
                self.save_state = SaveState.SAVE_FAILED
                self.last_error = exc
                raise
            self.saved_reports.insert(0, saved)
            self.save_state = SaveState.SAVED
            return saved

    async def refresh_saved(self) -> list[SavedReportResponse]:
        self.saved_reports = list(await self.client.list_saved_reports())
        return self.saved_reports

    async def delete_saved(self, report_id: uuid.UUID) -> None:
        with self._exclusive("delete"):
            await self.client.delete_saved_report(report_id)
        self.saved_reports = [r for r in self.saved_reports if str(r.id) != str(report_id)]
        logger.debug("Removed saved report %s from the builder", report_id)
