"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 12:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "company_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("company_email", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("company_phone", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("company_address", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("time_zone", sa.Text(), nullable=False, server_default=sa.text("'America/New_York'")),
        sa.Column(
            "time_format",
            sa.Enum("12h", "24h", name="time_format"),
            nullable=False,
            server_default=sa.text("'12h'"),
        ),
        sa.Column("business_hours", sa.Text()),
        sa.Column("minimum_booking_value", sa.Float(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=False),
        sa.Column(
            "pricing_type",
            sa.Enum("fixed_item", "area_based", "base_plus_addons", "custom_quote", name="pricing_type"),
            nullable=False,
            server_default=sa.text("'fixed_item'"),
        ),
        sa.Column("base_price", sa.Float()),
        sa.Column("price_per_unit", sa.Float()),
        sa.Column("minimum_price", sa.Float()),
        sa.Column("area_sizes", sa.Text()),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "service_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("max_quantity", sa.Integer(), nullable=False, server_default=sa.text("10")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "service_frequencies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("discount_percent", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("customer_email", sa.Text()),
        sa.Column("customer_phone", sa.Text(), nullable=False),
        sa.Column("customer_address", sa.Text(), nullable=False),
        sa.Column("booking_date", sa.Text(), nullable=False),
        sa.Column("start_time", sa.Text(), nullable=False),
        sa.Column("end_time", sa.Text(), nullable=False),
        sa.Column("total_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("payment_method", sa.Enum("site", "online", name="payment_method"), nullable=False),
        sa.Column(
            "payment_status",
            sa.Enum("unpaid", "paid", name="payment_status"),
            nullable=False,
            server_default=sa.text("'unpaid'"),
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "confirmed", "cancelled", "completed", name="booking_status"),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])

    op.create_table(
        "booking_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("service_name", sa.Text(), nullable=False),
        sa.Column("pricing_type", sa.Text(), nullable=False, server_default=sa.text("'fixed_item'")),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("area_size", sa.Text()),
        sa.Column("area_value", sa.Float()),
        sa.Column("selected_options", sa.Text()),
        sa.Column("selected_frequency", sa.Text()),
        sa.Column("customer_notes", sa.Text()),
        sa.Column("price_breakdown", sa.Text()),
    )

    op.create_table(
        "booking_slot_claims",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("booking_date", sa.Text(), nullable=False),
        sa.Column("slot_time", sa.Text(), nullable=False),
        sa.UniqueConstraint("booking_date", "slot_time"),
    )


def downgrade():
    op.drop_table("booking_slot_claims")
    op.drop_table("booking_items")
    op.drop_index("ix_bookings_booking_date", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("service_frequencies")
    op.drop_table("service_options")
    op.drop_table("services")
    op.drop_table("company_settings")
