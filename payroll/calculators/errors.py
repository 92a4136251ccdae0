"""
errors.py — Exceptions raised by the payroll calculators.

All of them subclass ValueError so the global ValueError handler in main.py
surfaces them as 422 responses without extra wiring.
"""
from __future__ import annotations


class PayrollInputError(ValueError):
    """Base class for inputs the calculators cannot work with."""


class InvalidInputError(PayrollInputError):
    """Out-of-range or structurally unusable non-date input (e.g. month_number=13)."""


class InvalidDateError(PayrollInputError):
    """Malformed date string, or dates in an impossible order."""

    def __init__(self, field: str, issue: str) -> None:
        self.field = field
        self.issue = issue
        super().__init__(f"{field}: {issue}")


__all__ = ["PayrollInputError", "InvalidInputError", "InvalidDateError"]
