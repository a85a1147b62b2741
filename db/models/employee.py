"""
db/models/employee.py

The seven sub-entity tables that together form one employee record.

Every table is keyed by ``employee_id``; the import pipeline writes all
seven for one employee inside a single transaction.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import CHAR, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

EMPLOYEE_ID_LENGTH = 50


def _employee_fk() -> Mapped[str]:
    return mapped_column(
        String(EMPLOYEE_ID_LENGTH),
        ForeignKey("employee_core.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )


class EmployeeCore(Base, TimestampMixin):
    __tablename__ = "employee_core"

    employee_id: Mapped[str] = mapped_column(String(EMPLOYEE_ID_LENGTH), primary_key=True)
    imip_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gender: Mapped[str | None] = mapped_column(CHAR(1), nullable=True)
    place_of_birth: Mapped[str | None] = mapped_column(String(120), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    marital_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tax_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    religion: Mapped[str | None] = mapped_column(String(50), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(80), nullable=True)
    blood_type: Mapped[str | None] = mapped_column(String(3), nullable=True)
    kartu_keluarga_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ktp_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    npwp: Mapped[str | None] = mapped_column(String(50), nullable=True)
    education: Mapped[str | None] = mapped_column(String(120), nullable=True)


class EmployeeInsurance(Base, TimestampMixin):
    __tablename__ = "employee_insurance"

    employee_id: Mapped[str] = _employee_fk()
    insurance_endorsement: Mapped[str | None] = mapped_column(CHAR(1), nullable=True)
    insurance_owlexa: Mapped[str | None] = mapped_column(CHAR(1), nullable=True)
    insurance_fpg: Mapped[str | None] = mapped_column(CHAR(1), nullable=True)
    bpjs_tk: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bpjs_kes: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status_bpjs_kes: Mapped[str | None] = mapped_column(String(80), nullable=True)


class EmployeeContact(Base, TimestampMixin):
    __tablename__ = "employee_contact"

    employee_id: Mapped[str] = _employee_fk()
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    emergency_contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    spouse_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    child_name_1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    child_name_2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    child_name_3: Mapped[str | None] = mapped_column(String(255), nullable=True)


class EmployeeOnboard(Base, TimestampMixin):
    __tablename__ = "employee_onboard"

    employee_id: Mapped[str] = _employee_fk()
    point_of_hire: Mapped[str | None] = mapped_column(String(120), nullable=True)
    point_of_origin: Mapped[str | None] = mapped_column(String(120), nullable=True)
    schedule_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    first_join_date_merdeka: Mapped[date | None] = mapped_column(Date, nullable=True)
    transfer_merdeka: Mapped[date | None] = mapped_column(Date, nullable=True)
    first_join_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    join_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    employment_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    end_contract: Mapped[date | None] = mapped_column(Date, nullable=True)
    years_in_service: Mapped[int | None] = mapped_column(Integer, nullable=True)


class EmployeeEmployment(Base, TimestampMixin):
    __tablename__ = "employee_employment"

    employee_id: Mapped[str] = _employee_fk()
    company_office: Mapped[str | None] = mapped_column(String(120), nullable=True)
    work_location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    division: Mapped[str | None] = mapped_column(String(120), nullable=True)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    section: Mapped[str | None] = mapped_column(String(120), nullable=True)
    direct_report: Mapped[str | None] = mapped_column(String(255), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    grade: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position_grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    group_job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    terminated_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    terminated_type: Mapped[str | None] = mapped_column(String(80), nullable=True)
    terminated_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    blacklist_mti: Mapped[str | None] = mapped_column(CHAR(1), nullable=True)
    blacklist_imip: Mapped[str | None] = mapped_column(CHAR(1), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class EmployeeBank(Base, TimestampMixin):
    __tablename__ = "employee_bank"

    employee_id: Mapped[str] = _employee_fk()
    bank_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    account_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_no: Mapped[str | None] = mapped_column(String(80), nullable=True)


class EmployeeTravel(Base, TimestampMixin):
    __tablename__ = "employee_travel"

    employee_id: Mapped[str] = _employee_fk()
    travel_in: Mapped[date | None] = mapped_column(Date, nullable=True)
    travel_out: Mapped[date | None] = mapped_column(Date, nullable=True)
    passport_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    kitas_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
