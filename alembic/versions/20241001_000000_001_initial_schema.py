"""Initial schema: users, catalog, doctor schedules and the payment ledger.

Revision ID: 001
Revises:
Create Date: 2024-10-01 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _common_columns() -> list[sa.Column]:
    """Id, timestamps, audit actors and soft delete shared by every table."""
    return [
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        # Soft delete
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", postgresql.UUID(as_uuid=False), nullable=True),
        # Audit
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("updated_by", postgresql.UUID(as_uuid=False), nullable=True),
    ]


def _active_unique_index(name: str, table: str, columns: list[str]) -> None:
    """Unique index over non-deleted rows only."""
    op.create_index(
        name,
        table,
        columns,
        unique=True,
        postgresql_where=sa.text("is_deleted = false"),
    )


def upgrade() -> None:
    """Create the clinic schema."""

    # ========================================================================
    # IDENTITY
    # ========================================================================

    op.create_table(
        "users",
        *_common_columns(),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_is_deleted", "users", ["is_deleted"])
    _active_unique_index("uq_users_username_active", "users", ["username"])

    # ========================================================================
    # CATALOG
    # ========================================================================

    op.create_table(
        "catalog_items",
        *_common_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_type", sa.String(50), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id", name="pk_catalog_items"),
        sa.CheckConstraint("price >= 0", name="ck_catalog_items_price_non_negative"),
        sa.CheckConstraint(
            "duration_days >= 0", name="ck_catalog_items_duration_non_negative"
        ),
    )
    op.create_index("ix_catalog_items_is_deleted", "catalog_items", ["is_deleted"])
    _active_unique_index("uq_catalog_items_name_active", "catalog_items", ["name"])

    # ========================================================================
    # DOCTOR SCHEDULES
    # ========================================================================

    op.create_table(
        "schedule_slots",
        *_common_columns(),
        sa.Column("doctor_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("finish_time", sa.Time(), nullable=False),
        sa.Column("break_start", sa.Time(), nullable=False),
        sa.Column("break_end", sa.Time(), nullable=False),
        sa.Column("occupancy", sa.String(20), nullable=False, server_default="free"),
        sa.PrimaryKeyConstraint("id", name="pk_schedule_slots"),
        sa.ForeignKeyConstraint(
            ["doctor_id"],
            ["users.id"],
            name="fk_schedule_slots_doctor_id_users",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_schedule_slots_doctor_id", "schedule_slots", ["doctor_id"])
    op.create_index("ix_schedule_slots_date", "schedule_slots", ["date"])
    op.create_index("ix_schedule_slots_is_deleted", "schedule_slots", ["is_deleted"])
    _active_unique_index(
        "uq_schedule_slots_doctor_date_active", "schedule_slots", ["doctor_id", "date"]
    )

    # ========================================================================
    # LEDGER
    # ========================================================================

    op.create_table(
        "cards",
        *_common_columns(),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("card_number", sa.String(16), nullable=False),
        sa.Column("funded_balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.PrimaryKeyConstraint("id", name="pk_cards"),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["users.id"],
            name="fk_cards_patient_id_users",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint(
            "funded_balance >= 0", name="ck_cards_funded_balance_non_negative"
        ),
    )
    op.create_index("ix_cards_patient_id", "cards", ["patient_id"])
    op.create_index("ix_cards_is_deleted", "cards", ["is_deleted"])
    _active_unique_index("uq_cards_patient_id_active", "cards", ["patient_id"])
    _active_unique_index("uq_cards_card_number_active", "cards", ["card_number"])

    op.create_table(
        "bookings",
        *_common_columns(),
        sa.Column("card_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("item_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=True),
        sa.Column("expected_completion", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="in_process"),
        sa.PrimaryKeyConstraint("id", name="pk_bookings"),
        sa.ForeignKeyConstraint(
            ["card_id"], ["cards.id"], name="fk_bookings_card_id_cards", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["item_id"],
            ["catalog_items.id"],
            name="fk_bookings_item_id_catalog_items",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["doctor_id"], ["users.id"], name="fk_bookings_doctor_id_users", ondelete="RESTRICT"
        ),
        sa.CheckConstraint(
            "to_date IS NULL OR to_date >= from_date",
            name="ck_bookings_to_date_not_before_from_date",
        ),
    )
    op.create_index("ix_bookings_card_id", "bookings", ["card_id"])
    op.create_index("ix_bookings_doctor_id", "bookings", ["doctor_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_is_deleted", "bookings", ["is_deleted"])

    op.create_table(
        "payment_records",
        *_common_columns(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("method", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="not_paid"),
        sa.PrimaryKeyConstraint("id", name="pk_payment_records"),
        sa.ForeignKeyConstraint(
            ["booking_id"],
            ["bookings.id"],
            name="fk_payment_records_booking_id_bookings",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["users.id"],
            name="fk_payment_records_patient_id_users",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint(
            "amount_paid >= 0", name="ck_payment_records_amount_paid_non_negative"
        ),
    )
    op.create_index("ix_payment_records_booking_id", "payment_records", ["booking_id"])
    op.create_index("ix_payment_records_patient_id", "payment_records", ["patient_id"])
    op.create_index("ix_payment_records_is_deleted", "payment_records", ["is_deleted"])
    _active_unique_index(
        "uq_payment_records_booking_id_active", "payment_records", ["booking_id"]
    )


def downgrade() -> None:
    """Drop the clinic schema."""
    op.drop_table("payment_records")
    op.drop_table("bookings")
    op.drop_table("cards")
    op.drop_table("schedule_slots")
    op.drop_table("catalog_items")
    op.drop_table("users")
