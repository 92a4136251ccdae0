"""
models/salary_slip.py — SQLAlchemy ORM model for computed salary slips.

Table: salary_slips
One slip per employee per calendar month (unique constraint).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from payroll.database import Base, JSONType


class SalarySlipORM(Base):
    """
    slip_data: Full SalarySlipResult serialized as JSON.
    gross_salary / tds / financial_year: denormalized for YTD and TDS report queries
    without parsing the JSON blob.
    """
    __tablename__ = "salary_slips"
    __table_args__ = (
        UniqueConstraint("employee_id", "salary_year", "salary_month", name="uq_salary_slip_period"),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    salary_month: Mapped[int] = mapped_column(Integer, nullable=False)
    salary_year: Mapped[int] = mapped_column(Integer, nullable=False)
    financial_year: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        index=True,
        comment="'2024-25' style, denormalized for YTD queries",
    )
    gross_salary: Mapped[float] = mapped_column(Float, nullable=False)
    tds: Mapped[float] = mapped_column(Float, nullable=False)
    slip_data: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        comment="Full SalarySlipResult serialized as JSON",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
