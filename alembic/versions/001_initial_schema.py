"""Initial schema: fleet, customers, reservations, expenses, reports

Revision ID: 0001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ── Fleet ─────────────────────────────────────────────────────────

    op.create_table(
        "vehicles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("license_plate", sa.String(20), unique=True, index=True, nullable=False),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("vehicle_type", sa.String(50), nullable=True),
        sa.Column("fuel", sa.String(30), nullable=True),
        sa.Column("monthly_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("daily_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("current_mileage", sa.Integer(), nullable=True),
        sa.Column("apk_date", sa.Date(), nullable=True),
        sa.Column("warranty_end_date", sa.Date(), nullable=True),
        sa.Column("maintenance_status", sa.String(30), nullable=True),
        sa.Column("gps", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "availability_status",
            sa.Enum("available", "rented", "maintenance", "out_of_service", name="availabilitystatus"),
            nullable=False,
        ),
        sa.Column("remarks", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # ── Customers ─────────────────────────────────────────────────────

    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), index=True, nullable=False),
        sa.Column("debtor_number", sa.String(50), index=True, nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("customer_type", sa.Enum("individual", "business", name="customertype"), nullable=False),
        sa.Column("corporate_discount", sa.Numeric(5, 2), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), server_default="Nederland", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "drivers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "customer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("is_primary", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
    )

    # ── Reservations ──────────────────────────────────────────────────

    op.create_table(
        "reservations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "vehicle_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("vehicles.id", ondelete="RESTRICT"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "customer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("customers.id", ondelete="RESTRICT"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "driver_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("drivers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("start_date", sa.Date(), index=True, nullable=False),
        sa.Column("end_date", sa.Date(), index=True, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "booked", "confirmed", "picked_up", "returned", "completed", "cancelled",
                name="reservationstatus",
            ),
            index=True,
            nullable=False,
        ),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(255), server_default="system", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_reservations_vehicle_window", "reservations", ["vehicle_id", "start_date", "end_date"])

    # ── Expenses ──────────────────────────────────────────────────────

    op.create_table(
        "expenses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "vehicle_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("category", sa.String(50), index=True, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), index=True, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(255), server_default="system", nullable=False),
        *_timestamps(),
    )

    # ── Reports & activity ────────────────────────────────────────────

    op.create_table(
        "saved_reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("configuration", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(255), server_default="system", nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "activity_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("entity_type", sa.String(50), index=True, nullable=False),
        sa.Column("entity_id", sa.String(100), index=True, nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("changes_json", sa.Text(), nullable=True),
        sa.Column("actor", sa.String(255), server_default="system", nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("activity_log")
    op.drop_table("saved_reports")
    op.drop_table("expenses")
    op.drop_index("ix_reservations_vehicle_window", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("drivers")
    op.drop_table("customers")
    op.drop_table("vehicles")
    sa.Enum(name="reservationstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="customertype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="availabilitystatus").drop(op.get_bind(), checkfirst=True)
