"""
Ad-hoc report engine.

A ``ReportConfiguration`` is first validated against the catalog as a whole;
every problem found is collected and raised together in one
``ReportValidationError`` so nothing reaches the database unless the whole
document is sound. A valid configuration is compiled into a single SELECT:

- the first data source is the base table, the others are LEFT JOINed along
  the catalog's join edges (through intermediate tables when needed);
- filters are AND-combined;
- with aggregations or groupings present every plain column must be grouped;
- the row count is capped by ``settings.report_max_rows``.

Rows come back as dicts keyed by ``column_key``.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import Enum, String, cast, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.config import settings
from rentdesk.reports import catalog
from rentdesk.reports.catalog import (
    LIST_OPERATORS,
    NO_VALUE_OPERATORS,
    NUMERIC_AGGREGATIONS,
    AggregationFunction,
    CatalogField,
    FieldType,
    FilterOperator,
    JoinEdge,
)
from rentdesk.reports.schemas import ReportColumn, ReportConfiguration, column_key
from rentdesk.reports.values import FilterValue, resolve_list, resolve_value, to_python

logger = logging.getLogger(__name__)


class ReportValidationError(Exception):
    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


@dataclass
class ResolvedFilter:
    field: CatalogField
    operator: FilterOperator
    value: Optional[FilterValue] = None
    value2: Optional[FilterValue] = None
    values: tuple[FilterValue, ...] = ()


@dataclass
class CompiledReport:
    config: ReportConfiguration
    columns: list[tuple[ReportColumn, CatalogField]]
    filters: list[ResolvedFilter]
    groupings: list[CatalogField]
    orderings: list[tuple[CatalogField, Optional[AggregationFunction], str]]
    joins: list[tuple[JoinEdge, str]] = field(default_factory=list)

    @property
    def limit(self) -> int:
        if self.config.limit is None:
            return settings.report_max_rows
        return min(self.config.limit, settings.report_max_rows)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _lookup(table: str, name: str, sources: list[str], what: str, problems: list[str]) -> Optional[CatalogField]:
    if table not in sources:
        problems.append(f"{what} {table}.{name} refers to a table that is not a selected data source")
        return None
    found = catalog.get_field(table, name)
    if found is None:
        problems.append(f"{what} refers to unknown field {table}.{name}")
    return found


def resolve_filter(catalog_field: CatalogField, operator: str, value: Any, value2: Any = None) -> ResolvedFilter:
    """Check ``operator`` against the field and parse its value(s). Raises ValueError."""
    try:
        op = FilterOperator(operator)
    except ValueError:
        raise ValueError(f"unknown operator '{operator}'") from None
    if op not in catalog_field.operators:
        raise ValueError(f"operator '{op.value}' is not allowed on {catalog_field.type.value} field {catalog_field.name}")

    if op in NO_VALUE_OPERATORS:
        return ResolvedFilter(field=catalog_field, operator=op)
    if op in LIST_OPERATORS:
        return ResolvedFilter(field=catalog_field, operator=op, values=resolve_list(catalog_field.type, value))
    if op == FilterOperator.between:
        return ResolvedFilter(
            field=catalog_field,
            operator=op,
            value=resolve_value(catalog_field.type, value),
            value2=resolve_value(catalog_field.type, value2),
        )
    return ResolvedFilter(field=catalog_field, operator=op, value=resolve_value(catalog_field.type, value))


def _join_path(joined: list[str], target: str) -> list[tuple[JoinEdge, str]]:
    queue = deque((table, []) for table in joined)
    seen = set(joined)
    while queue:
        table, path = queue.popleft()
        if table == target:
            return path
        for edge, neighbour in catalog.edges_for(table):
            if neighbour not in seen:
                seen.add(neighbour)
                queue.append((neighbour, path + [(edge, neighbour)]))
    raise ReportValidationError([f"No join path from {joined[0]} to {target}"])


def plan_joins(sources: list[str]) -> list[tuple[JoinEdge, str]]:
    joined = [sources[0]]
    steps: list[tuple[JoinEdge, str]] = []
    for target in sources[1:]:
        if target in joined:
            continue
        for edge, table in _join_path(joined, target):
            steps.append((edge, table))
            joined.append(table)
    return steps


def validate_configuration(config: ReportConfiguration) -> CompiledReport:
    problems: list[str] = []

    sources = list(dict.fromkeys(config.data_sources))
    if not sources:
        problems.append("At least one data source is required")
    for source in sources:
        if catalog.get_data_source(source) is None:
            problems.append(f"Unknown data source '{source}'")
    if not config.columns:
        problems.append("At least one column is required")
    if problems and not sources:
        raise ReportValidationError(problems)

    columns = []
    key_owners: dict[str, str] = {}
    for col in config.columns:
        found = _lookup(col.table, col.field, sources, "Column", problems)
        if found is None:
            continue
        if col.aggregation in NUMERIC_AGGREGATIONS and not (found.aggregatable and found.type == FieldType.number):
            problems.append(f"{col.aggregation.value} cannot be applied to {col.table}.{col.field}")
            continue
        # Rows are keyed by column_key; the same key from two tables would hide one of them.
        key = column_key(col)
        owner = key_owners.setdefault(key, col.table)
        if owner != col.table:
            problems.append(
                f"Columns {owner}.{col.field} and {col.table}.{col.field} both produce the result key '{key}'"
            )
            continue
        columns.append((col, found))

    filters = []
    for flt in config.filters:
        found = _lookup(flt.table, flt.field, sources, "Filter", problems)
        if found is None:
            continue
        try:
            filters.append(resolve_filter(found, flt.operator, flt.value, flt.value2))
        except ValueError as exc:
            problems.append(f"Filter on {flt.table}.{flt.field}: {exc}")

    groupings = []
    for grp in config.group_by:
        found = _lookup(grp.table, grp.field, sources, "Grouping", problems)
        if found is not None:
            groupings.append(found)

    aggregated = bool(groupings) or any(col.aggregation for col, _ in columns)
    grouped = {(f.table, f.name) for f in groupings}
    if aggregated:
        for col, found in columns:
            if col.aggregation is None and (found.table, found.name) not in grouped:
                problems.append(f"Column {col.table}.{col.field} must be aggregated or listed in groupBy")

    orderings = []
    for order in config.order_by:
        found = _lookup(order.table, order.field, sources, "Ordering", problems)
        if found is None:
            continue
        if aggregated and order.aggregation is None and (found.table, found.name) not in grouped:
            problems.append(f"Ordering on {order.table}.{order.field} must be aggregated or listed in groupBy")
            continue
        orderings.append((found, order.aggregation, order.direction))

    if problems:
        raise ReportValidationError(problems)

    return CompiledReport(
        config=config,
        columns=columns,
        filters=filters,
        groupings=groupings,
        orderings=orderings,
        joins=plan_joins(sources),
    )


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------


def _column(catalog_field: CatalogField):
    model = catalog.get_data_source(catalog_field.table).model
    return getattr(model, catalog_field.attribute)


def _comparable(catalog_field: CatalogField):
    col = _column(catalog_field)
    # Enum columns only accept enum members as bind values; text operators
    # compare against their string form instead.
    if catalog_field.type == FieldType.text and isinstance(col.type, Enum):
        return cast(col, String)
    return col


def _aggregate(catalog_field: CatalogField, aggregation: Optional[AggregationFunction]):
    col = _column(catalog_field)
    if aggregation is None:
        return col
    if aggregation == AggregationFunction.COUNT_DISTINCT:
        return func.count(distinct(col))
    return getattr(func, aggregation.value.lower())(col)


def _condition(flt: ResolvedFilter):
    col = _comparable(flt.field)
    op = flt.operator
    value = to_python(flt.value) if flt.value is not None else None

    if op == FilterOperator.is_null:
        return col.is_(None)
    if op == FilterOperator.is_not_null:
        return col.is_not(None)
    if op == FilterOperator.equals:
        return col == value
    if op == FilterOperator.not_equals:
        return or_(col != value, col.is_(None))
    if op == FilterOperator.contains:
        return col.icontains(value, autoescape=True)
    if op == FilterOperator.not_contains:
        return or_(~col.icontains(value, autoescape=True), col.is_(None))
    if op == FilterOperator.starts_with:
        return col.istartswith(value, autoescape=True)
    if op == FilterOperator.ends_with:
        return col.iendswith(value, autoescape=True)
    if op == FilterOperator.greater_than:
        return col > value
    if op == FilterOperator.less_than:
        return col < value
    if op == FilterOperator.greater_or_equal:
        return col >= value
    if op == FilterOperator.less_or_equal:
        return col <= value
    if op == FilterOperator.between:
        return col.between(value, to_python(flt.value2))
    values = [to_python(v) for v in flt.values]
    if op == FilterOperator.in_:
        return col.in_(values)
    return or_(col.not_in(values), col.is_(None))


def build_query(report: CompiledReport):
    selected: dict[str, Any] = {}
    for col, found in report.columns:
        key = column_key(col)
        if key not in selected:
            selected[key] = _aggregate(found, col.aggregation).label(key)

    base = catalog.get_data_source(report.config.data_sources[0]).model
    query = select(*selected.values()).select_from(base)
    for edge, table in report.joins:
        source_model = catalog.get_data_source(edge.source_table).model
        target_model = catalog.get_data_source(edge.target_table).model
        query = query.outerjoin(
            catalog.get_data_source(table).model,
            getattr(source_model, edge.source_attribute) == getattr(target_model, edge.target_attribute),
        )

    if report.filters:
        query = query.where(*[_condition(f) for f in report.filters])
    if report.groupings:
        query = query.group_by(*[_column(g) for g in report.groupings])
    for found, aggregation, direction in report.orderings:
        expr = _aggregate(found, aggregation)
        query = query.order_by(expr.desc() if direction == "desc" else expr.asc())

    return query.limit(report.limit)


async def execute_report(db: AsyncSession, config: ReportConfiguration) -> list[dict]:
    report = validate_configuration(config)
    query = build_query(report)
    result = await db.execute(query)
    rows = [dict(row._mapping) for row in result]
    logger.info(
        "Executed report over %s: %d column(s), %d filter(s), %d row(s)",
        ",".join(config.data_sources),
        len(report.columns),
        len(report.filters),
        len(rows),
    )
    return rows
