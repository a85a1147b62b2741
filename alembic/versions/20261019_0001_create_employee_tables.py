"""create employee sub-entity tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

_CHILD_TABLES = (
    "employee_insurance",
    "employee_contact",
    "employee_onboard",
    "employee_employment",
    "employee_bank",
    "employee_travel",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _child_key(table_name: str) -> list:
    return [
        sa.Column("employee_id", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(
            ["employee_id"],
            ["employee_core.employee_id"],
            name=f"fk_{table_name}_employee_id_employee_core",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("employee_id", name=f"pk_{table_name}"),
    ]


def upgrade() -> None:
    op.create_table(
        "employee_core",
        sa.Column("employee_id", sa.String(length=50), nullable=False),
        sa.Column("imip_id", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("gender", sa.CHAR(length=1), nullable=True),
        sa.Column("place_of_birth", sa.String(length=120), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("marital_status", sa.String(length=50), nullable=True),
        sa.Column("tax_status", sa.String(length=20), nullable=True),
        sa.Column("religion", sa.String(length=50), nullable=True),
        sa.Column("nationality", sa.String(length=80), nullable=True),
        sa.Column("blood_type", sa.String(length=3), nullable=True),
        sa.Column("kartu_keluarga_no", sa.String(length=50), nullable=True),
        sa.Column("ktp_no", sa.String(length=50), nullable=True),
        sa.Column("npwp", sa.String(length=50), nullable=True),
        sa.Column("education", sa.String(length=120), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("employee_id", name="pk_employee_core"),
    )

    op.create_table(
        "employee_insurance",
        *_child_key("employee_insurance"),
        sa.Column("insurance_endorsement", sa.CHAR(length=1), nullable=True),
        sa.Column("insurance_owlexa", sa.CHAR(length=1), nullable=True),
        sa.Column("insurance_fpg", sa.CHAR(length=1), nullable=True),
        sa.Column("bpjs_tk", sa.String(length=50), nullable=True),
        sa.Column("bpjs_kes", sa.String(length=50), nullable=True),
        sa.Column("status_bpjs_kes", sa.String(length=80), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "employee_contact",
        *_child_key("employee_contact"),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=255), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=50), nullable=True),
        sa.Column("spouse_name", sa.String(length=255), nullable=True),
        sa.Column("child_name_1", sa.String(length=255), nullable=True),
        sa.Column("child_name_2", sa.String(length=255), nullable=True),
        sa.Column("child_name_3", sa.String(length=255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "employee_onboard",
        *_child_key("employee_onboard"),
        sa.Column("point_of_hire", sa.String(length=120), nullable=True),
        sa.Column("point_of_origin", sa.String(length=120), nullable=True),
        sa.Column("schedule_type", sa.String(length=50), nullable=True),
        sa.Column("first_join_date_merdeka", sa.Date(), nullable=True),
        sa.Column("transfer_merdeka", sa.Date(), nullable=True),
        sa.Column("first_join_date", sa.Date(), nullable=True),
        sa.Column("join_date", sa.Date(), nullable=True),
        sa.Column("employment_status", sa.String(length=50), nullable=True),
        sa.Column("end_contract", sa.Date(), nullable=True),
        sa.Column("years_in_service", sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "employee_employment",
        *_child_key("employee_employment"),
        sa.Column("company_office", sa.String(length=120), nullable=True),
        sa.Column("work_location", sa.String(length=120), nullable=True),
        sa.Column("division", sa.String(length=120), nullable=True),
        sa.Column("department", sa.String(length=120), nullable=True),
        sa.Column("section", sa.String(length=120), nullable=True),
        sa.Column("direct_report", sa.String(length=255), nullable=True),
        sa.Column("job_title", sa.String(length=255), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.Column("position_grade", sa.String(length=50), nullable=True),
        sa.Column("group_job_title", sa.String(length=255), nullable=True),
        sa.Column("terminated_date", sa.Date(), nullable=True),
        sa.Column("terminated_type", sa.String(length=80), nullable=True),
        sa.Column("terminated_reason", sa.String(length=500), nullable=True),
        sa.Column("blacklist_mti", sa.CHAR(length=1), nullable=True),
        sa.Column("blacklist_imip", sa.CHAR(length=1), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_employee_employment_department",
        "employee_employment",
        ["department"],
        unique=False,
    )

    op.create_table(
        "employee_bank",
        *_child_key("employee_bank"),
        sa.Column("bank_name", sa.String(length=120), nullable=True),
        sa.Column("account_name", sa.String(length=255), nullable=True),
        sa.Column("account_no", sa.String(length=80), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "employee_travel",
        *_child_key("employee_travel"),
        sa.Column("travel_in", sa.Date(), nullable=True),
        sa.Column("travel_out", sa.Date(), nullable=True),
        sa.Column("passport_no", sa.String(length=50), nullable=True),
        sa.Column("kitas_no", sa.String(length=50), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_index("ix_employee_employment_department", table_name="employee_employment")
    for table_name in reversed(_CHILD_TABLES):
        op.drop_table(table_name)
    op.drop_table("employee_core")
