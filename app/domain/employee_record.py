"""
app/domain/employee_record.py

Layout of the employee record across its seven sub-entity tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

NATURAL_KEY = "employee_id"


@dataclass(frozen=True)
class SubEntity:
    name: str
    table: str
    columns: tuple[str, ...]


CORE = SubEntity(
    name="core",
    table="employee_core",
    columns=(
        "imip_id",
        "name",
        "gender",
        "place_of_birth",
        "date_of_birth",
        "age",
        "marital_status",
        "tax_status",
        "religion",
        "nationality",
        "blood_type",
        "kartu_keluarga_no",
        "ktp_no",
        "npwp",
        "education",
    ),
)

INSURANCE = SubEntity(
    name="insurance",
    table="employee_insurance",
    columns=(
        "insurance_endorsement",
        "insurance_owlexa",
        "insurance_fpg",
        "bpjs_tk",
        "bpjs_kes",
        "status_bpjs_kes",
    ),
)

CONTACT = SubEntity(
    name="contact",
    table="employee_contact",
    columns=(
        "phone_number",
        "email",
        "address",
        "city",
        "emergency_contact_name",
        "emergency_contact_phone",
        "spouse_name",
        "child_name_1",
        "child_name_2",
        "child_name_3",
    ),
)

ONBOARDING = SubEntity(
    name="onboarding",
    table="employee_onboard",
    columns=(
        "point_of_hire",
        "point_of_origin",
        "schedule_type",
        "first_join_date_merdeka",
        "transfer_merdeka",
        "first_join_date",
        "join_date",
        "employment_status",
        "end_contract",
        "years_in_service",
    ),
)

EMPLOYMENT = SubEntity(
    name="employment",
    table="employee_employment",
    columns=(
        "company_office",
        "work_location",
        "division",
        "department",
        "section",
        "direct_report",
        "job_title",
        "grade",
        "position_grade",
        "group_job_title",
        "terminated_date",
        "terminated_type",
        "terminated_reason",
        "blacklist_mti",
        "blacklist_imip",
        "status",
    ),
)

BANK = SubEntity(
    name="bank",
    table="employee_bank",
    columns=("bank_name", "account_name", "account_no"),
)

TRAVEL = SubEntity(
    name="travel",
    table="employee_travel",
    columns=("travel_in", "travel_out", "passport_no", "kitas_no"),
)

# Core first so the other six tables can reference it.
SUB_ENTITIES: tuple[SubEntity, ...] = (
    CORE,
    INSURANCE,
    CONTACT,
    ONBOARDING,
    EMPLOYMENT,
    BANK,
    TRAVEL,
)

EMPLOYEE_FIELDS: tuple[str, ...] = (NATURAL_KEY,) + tuple(
    column for entity in SUB_ENTITIES for column in entity.columns
)

DATE_FIELDS: frozenset[str] = frozenset(
    {
        "date_of_birth",
        "first_join_date_merdeka",
        "transfer_merdeka",
        "first_join_date",
        "join_date",
        "end_contract",
        "travel_in",
        "travel_out",
        "terminated_date",
    }
)

CHAR1_FIELDS: frozenset[str] = frozenset(
    {
        "gender",
        "insurance_endorsement",
        "insurance_owlexa",
        "insurance_fpg",
        "blacklist_mti",
        "blacklist_imip",
    }
)

INTEGER_FIELDS: frozenset[str] = frozenset({"age", "years_in_service", "grade"})


@dataclass(frozen=True)
class SubEntityPayload:
    """
    Normalized column values for one sub-entity row.

    ``values`` covers every column of the sub-entity, so an update replaces
    the whole row apart from its key and audit timestamps.
    """

    entity: SubEntity
    employee_id: str
    values: tuple[tuple[str, Any], ...]

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)


@dataclass(frozen=True)
class EmployeeWritePlan:
    """
    Everything needed to persist one employee, in write order.
    """

    row_number: int
    employee_id: str
    payloads: tuple[SubEntityPayload, ...]

    def payload_for(self, entity_name: str) -> SubEntityPayload | None:
        for payload in self.payloads:
            if payload.entity.name == entity_name:
                return payload
        return None

