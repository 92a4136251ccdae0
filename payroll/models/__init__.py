"""
models/__init__.py — imports all ORM models so Base.metadata sees them
when database.create_tables() runs.
"""
from payroll.models.salary_slip import SalarySlipORM
from payroll.models.settlement import SettlementORM

__all__ = ["SalarySlipORM", "SettlementORM"]
