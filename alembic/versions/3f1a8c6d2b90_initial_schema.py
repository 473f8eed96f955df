"""Initial payroll schema

Revision ID: 3f1a8c6d2b90
Revises:
Create Date: 2026-01-05 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1a8c6d2b90"
down_revision = None
branch_labels = None
depends_on = None


contract_type = sa.Enum("CDI", "CDD", name="contracttype")


def upgrade() -> None:
    op.create_table(
        "contract",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("child_name", sa.String(length=100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("contract_type", contract_type, nullable=False),
        sa.Column("hours_per_day", sa.Float(), nullable=False),
        sa.Column("days_per_week", sa.Integer(), nullable=False),
        sa.Column("weeks_per_year", sa.Integer(), nullable=False),
        sa.Column("planned_absences", sa.JSON(), nullable=False),
        sa.Column("base_hourly_rate", sa.Float(), nullable=False),
        sa.Column("allow_override", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("override_hourly_rate", sa.Float(), nullable=True),
        sa.Column(
            "bill_complementary_hours",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("overtime_rate_percent", sa.Integer(), nullable=False, server_default="25"),
        sa.Column(
            "apply_precariousness_prime",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("meal_fee_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("meal_fee_per_meal", sa.Float(), nullable=False, server_default="0"),
        sa.Column("default_meals_per_day", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "maintenance_fee_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("maintenance_fee_tiers", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "time_entry",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meals_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_planned_absence", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "is_unplanned_absence",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("is_holiday", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_unavailable", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(["contract_id"], ["contract.id"]),
        sa.UniqueConstraint("contract_id", "date", name="uq_time_entry_contract_date"),
    )

    op.create_table(
        "app_settings",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("net_coefficient", sa.Float(), nullable=False),
        sa.Column("reference_grid", sa.JSON(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("time_entry")
    op.drop_table("contract")
    contract_type.drop(op.get_bind(), checkfirst=True)
