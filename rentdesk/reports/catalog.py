"""
Static catalog of what the ad-hoc report builder may query.

Each data source maps a wire-level table id (``vehicles``) to an ORM model and
lists its reportable fields under their wire names (``licensePlate``) with
the ORM attribute that backs them, the field type, the filter operators the
type allows and whether numeric aggregation makes sense on it.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from rentdesk.customers.models import Customer, Driver
from rentdesk.expenses.models import Expense
from rentdesk.reservations.models import Reservation
from rentdesk.vehicles.models import Vehicle


class FieldType(str, enum.Enum):
    text = "text"
    number = "number"
    date = "date"
    boolean = "boolean"


class FilterOperator(str, enum.Enum):
    equals = "equals"
    not_equals = "not_equals"
    contains = "contains"
    not_contains = "not_contains"
    starts_with = "starts_with"
    ends_with = "ends_with"
    greater_than = "greater_than"
    less_than = "less_than"
    greater_or_equal = "greater_or_equal"
    less_or_equal = "less_or_equal"
    is_null = "is_null"
    is_not_null = "is_not_null"
    between = "between"
    in_ = "in"
    not_in = "not_in"


class AggregationFunction(str, enum.Enum):
    SUM = "SUM"
    AVG = "AVG"
    COUNT = "COUNT"
    MIN = "MIN"
    MAX = "MAX"
    COUNT_DISTINCT = "COUNT_DISTINCT"


# Aggregations that only make sense on numeric, aggregatable fields
NUMERIC_AGGREGATIONS = frozenset(
    {AggregationFunction.SUM, AggregationFunction.AVG, AggregationFunction.MIN, AggregationFunction.MAX}
)

NO_VALUE_OPERATORS = frozenset({FilterOperator.is_null, FilterOperator.is_not_null})
LIST_OPERATORS = frozenset({FilterOperator.in_, FilterOperator.not_in})

_O = FilterOperator

TEXT_OPERATORS = (
    _O.equals, _O.not_equals, _O.contains, _O.not_contains, _O.starts_with, _O.ends_with,
    _O.in_, _O.not_in, _O.is_null, _O.is_not_null,
)
NUMBER_OPERATORS = (
    _O.equals, _O.not_equals, _O.greater_than, _O.less_than, _O.greater_or_equal, _O.less_or_equal,
    _O.between, _O.is_null, _O.is_not_null,
)
DATE_OPERATORS = NUMBER_OPERATORS
BOOLEAN_OPERATORS = (_O.equals, _O.is_null, _O.is_not_null)

OPERATORS_BY_TYPE = {
    FieldType.text: TEXT_OPERATORS,
    FieldType.number: NUMBER_OPERATORS,
    FieldType.date: DATE_OPERATORS,
    FieldType.boolean: BOOLEAN_OPERATORS,
}


@dataclass(frozen=True)
class CatalogField:
    table: str
    name: str
    label: str
    type: FieldType
    attribute: str
    aggregatable: bool = False

    @property
    def operators(self) -> tuple[FilterOperator, ...]:
        return OPERATORS_BY_TYPE[self.type]


@dataclass(frozen=True)
class JoinEdge:
    source_table: str
    source_attribute: str
    target_table: str
    target_attribute: str


@dataclass(frozen=True)
class DataSource:
    id: str
    name: str
    model: type
    fields: tuple[CatalogField, ...] = field(default_factory=tuple)

    @property
    def table(self) -> str:
        return self.id

    def get_field(self, name: str) -> Optional[CatalogField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


def _fields(table: str, *specs: tuple) -> tuple[CatalogField, ...]:
    return tuple(
        CatalogField(table=table, name=name, label=label, type=ftype, attribute=attr, aggregatable=agg)
        for name, label, ftype, attr, agg in specs
    )


T, N, D, B = FieldType.text, FieldType.number, FieldType.date, FieldType.boolean

DATA_SOURCES: tuple[DataSource, ...] = (
    DataSource(
        id="vehicles",
        name="Vehicles",
        model=Vehicle,
        fields=_fields(
            "vehicles",
            ("licensePlate", "License Plate", T, "license_plate", False),
            ("brand", "Brand", T, "brand", False),
            ("model", "Model", T, "model", False),
            ("vehicleType", "Vehicle Type", T, "vehicle_type", False),
            ("fuel", "Fuel Type", T, "fuel", False),
            ("monthlyPrice", "Monthly Price", N, "monthly_price", True),
            ("dailyPrice", "Daily Price", N, "daily_price", True),
            ("currentMileage", "Current Mileage", N, "current_mileage", True),
            ("apkDate", "APK Date", D, "apk_date", False),
            ("warrantyEndDate", "Warranty End Date", D, "warranty_end_date", False),
            ("maintenanceStatus", "Maintenance Status", T, "maintenance_status", False),
            ("availabilityStatus", "Availability", T, "availability_status", False),
            ("gps", "Has GPS", B, "gps", False),
        ),
    ),
    DataSource(
        id="customers",
        name="Customers",
        model=Customer,
        fields=_fields(
            "customers",
            ("name", "Name", T, "name", False),
            ("debtorNumber", "Debtor Number", T, "debtor_number", False),
            ("email", "Email", T, "email", False),
            ("phone", "Phone", T, "phone", False),
            ("customerType", "Customer Type", T, "customer_type", False),
            ("corporateDiscount", "Corporate Discount (%)", N, "corporate_discount", True),
            ("city", "City", T, "city", False),
            ("country", "Country", T, "country", False),
        ),
    ),
    DataSource(
        id="reservations",
        name="Reservations",
        model=Reservation,
        fields=_fields(
            "reservations",
            ("startDate", "Start Date", D, "start_date", False),
            ("endDate", "End Date", D, "end_date", False),
            ("status", "Status", T, "status", False),
            ("totalPrice", "Total Price", N, "total_price", True),
            ("createdBy", "Created By", T, "created_by", False),
        ),
    ),
    DataSource(
        id="expenses",
        name="Expenses",
        model=Expense,
        fields=_fields(
            "expenses",
            ("category", "Category", T, "category", False),
            ("amount", "Amount", N, "amount", True),
            ("date", "Date", D, "date", False),
            ("description", "Description", T, "description", False),
            ("mileage", "Mileage at Service", N, "mileage", True),
        ),
    ),
    DataSource(
        id="drivers",
        name="Drivers",
        model=Driver,
        fields=_fields(
            "drivers",
            ("firstName", "First Name", T, "first_name", False),
            ("lastName", "Last Name", T, "last_name", False),
            ("email", "Email", T, "email", False),
            ("phone", "Phone", T, "phone", False),
            ("isPrimary", "Is Primary Driver", B, "is_primary", False),
        ),
    ),
)

JOIN_EDGES: tuple[JoinEdge, ...] = (
    JoinEdge("reservations", "vehicle_id", "vehicles", "id"),
    JoinEdge("reservations", "customer_id", "customers", "id"),
    JoinEdge("expenses", "vehicle_id", "vehicles", "id"),
    JoinEdge("drivers", "customer_id", "customers", "id"),
)

_BY_ID = {ds.id: ds for ds in DATA_SOURCES}


def get_data_source(source_id: str) -> Optional[DataSource]:
    return _BY_ID.get(source_id)


def get_field(table: str, name: str) -> Optional[CatalogField]:
    source = _BY_ID.get(table)
    return source.get_field(name) if source else None


def edges_for(table: str) -> list[tuple[JoinEdge, str]]:
    """Join edges touching ``table`` as (edge, neighbour table) pairs."""
    result = []
    for edge in JOIN_EDGES:
        if edge.source_table == table:
            result.append((edge, edge.target_table))
        elif edge.target_table == table:
            result.append((edge, edge.source_table))
    return result
