"""
tds_report.py — TDS report aggregation.

Groups persisted TDS deductions (salary slips and settlements) by employee for
Form 16 / 24Q style reporting. Pure functions over TDSReportEntry lists; the
store does the querying.
"""
from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional

from payroll.calculators.errors import InvalidInputError
from payroll.calculators.rounding import round_paise
from payroll.calculators.schemas import TDSReportEntry, TDSReportSummary, TDSReportTotals

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def _parse_month(value: str, field: str) -> tuple[int, int]:
    match = _MONTH_PATTERN.match((value or "").strip())
    if match is None:
        raise InvalidInputError(f"{field} must look like 'YYYY-MM', got {value!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidInputError(f"{field} month must be 01-12, got {value!r}")
    return year, month


def month_range_filter(
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Callable[[TDSReportEntry], bool]:
    """
    Predicate selecting entries whose (year, month) falls in [start, end].
    Either bound may be omitted. Bounds are "YYYY-MM" strings.

    Raises:
        InvalidInputError: malformed bound, or start after end.
    """
    lower = _parse_month(start, "start") if start else None
    upper = _parse_month(end, "end") if end else None
    if lower and upper and lower > upper:
        raise InvalidInputError(f"start {start!r} is after end {end!r}")

    def predicate(entry: TDSReportEntry) -> bool:
        period = (entry.year, entry.month)
        if lower and period < lower:
            return False
        if upper and period > upper:
            return False
        return True

    return predicate


def build_tds_report(entries: Iterable[TDSReportEntry]) -> List[TDSReportSummary]:
    """
    One summary per employee, sorted by employee name (then id).
    Entries with no TDS withheld are left out. Entries within a summary are
    sorted by date.
    """
    grouped: dict[str, list[TDSReportEntry]] = {}
    for entry in entries:
        if entry.tds_amount <= 0:
            continue
        grouped.setdefault(entry.employee_id, []).append(entry)

    summaries = []
    for employee_id, rows in grouped.items():
        rows.sort(key=lambda e: e.date)
        # Latest non-empty name wins (names may be missing on older rows)
        name = next((r.employee_name for r in reversed(rows) if r.employee_name), "")
        summaries.append(
            TDSReportSummary(
                employee_id=employee_id,
                employee_name=name,
                total_gross=round_paise(sum(r.gross_amount for r in rows)),
                total_tds=round_paise(sum(r.tds_amount for r in rows)),
                entry_count=len(rows),
                entries=rows,
            )
        )

    summaries.sort(key=lambda s: (s.employee_name.lower(), s.employee_id))
    return summaries


def summarize_tds_report(summaries: Iterable[TDSReportSummary]) -> TDSReportTotals:
    summaries = list(summaries)
    return TDSReportTotals(
        total_employees=len(summaries),
        total_entries=sum(s.entry_count for s in summaries),
        total_gross=round_paise(sum(s.total_gross for s in summaries)),
        total_tds=round_paise(sum(s.total_tds for s in summaries)),
    )
