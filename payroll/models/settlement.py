"""
models/settlement.py — SQLAlchemy ORM model for full & final settlements.

Table: settlements
Status lifecycle: draft → approved → paid.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Float, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from payroll.database import Base, JSONType


class SettlementORM(Base):
    """
    settlement_data: Full SettlementResult serialized as JSON.
    status, period and the gross / tax figures are denormalized for the
    approval workflow and the TDS report.
    """
    __tablename__ = "settlements"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="draft",
        comment="'draft', 'approved' or 'paid'",
    )
    settlement_month: Mapped[int] = mapped_column(Integer, nullable=False)
    settlement_year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_working_day: Mapped[date] = mapped_column(Date, nullable=False)
    gross_settlement: Mapped[float] = mapped_column(Float, nullable=False)
    tax_deduction: Mapped[float] = mapped_column(Float, nullable=False)
    settlement_data: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        comment="Full SettlementResult serialized as JSON",
    )

    approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_mode: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
