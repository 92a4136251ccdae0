"""
HTTP API tests — request → schema validation → business rules → calculators → response.

The database session is replaced through app.dependency_overrides and the
persisting store functions are patched, so no database is needed.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payroll.calculators.schemas import SettlementInput, SettlementStatus, TDSReportEntry, TDSSource
from payroll.calculators.settlement import preview_settlement
from payroll.database import get_db
from payroll.main import app
from payroll.tests.demo_employees import DEMO_SETTLEMENTS, DEMO_SLIPS


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

async def _fake_db():
    yield MagicMock()


@pytest_asyncio.fixture
async def client():
    """Async httpx client using ASGI transport, no live server needed."""
    app.dependency_overrides[get_db] = _fake_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Test Group 1: Stateless calculators
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_tax_calculate_new_regime(client: AsyncClient) -> None:
    response = await client.post("/api/tax/calculate", json={"annual_gross_income": 800_000})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["regime"] == "new"
    assert body["total_tax"] == 26_000
    assert body["monthly_tds"] == 2_167


@pytest.mark.asyncio
async def test_tax_compare(client: AsyncClient) -> None:
    response = await client.post(
        "/api/tax/compare",
        json={
            "annual_gross_income": 1_000_000,
            "deductions": {
                "section_80c": 150_000, "section_80d": 25_000,
                "section_80ccd_1b": 50_000, "home_loan_interest": 200_000,
            },
        },
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["recommended_regime"] == "old"
    assert body["savings"] == 28_600


@pytest.mark.asyncio
async def test_hra_exemption(client: AsyncClient) -> None:
    response = await client.post(
        "/api/tax/hra-exemption",
        json={"hra": 300_000, "basic_salary": 600_000, "rent_paid": 200_000, "is_metro_city": True},
    )
    assert response.status_code == 200
    assert response.json() == {"hra_exemption": 140_000}


@pytest.mark.asyncio
async def test_monthly_tds(client: AsyncClient) -> None:
    response = await client.post(
        "/api/tds/monthly",
        json={"monthly_gross": 100_000, "month_number": 1, "as_of": "2024-06-15"},
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"monthly_tds": 6_283, "financial_year": "2024-25"}


@pytest.mark.asyncio
async def test_monthly_tds_bad_month_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/tds/monthly", json={"monthly_gross": 100_000, "month_number": 13})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_statutory_explicit_state(client: AsyncClient) -> None:
    response = await client.post(
        "/api/statutory",
        json={"basic_salary": 30_000, "gross_salary": 50_000, "state": "Karnataka"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["provident_fund"] == 3_600
    assert body["esic"] == 0
    assert body["professional_tax"] == 200
    assert body["pf_contributions"]["employee_pf"] == 1_800


@pytest.mark.asyncio
async def test_unknown_field_rejected(client: AsyncClient) -> None:
    response = await client.post(
        "/api/tax/calculate", json={"annual_gross_income": 800_000, "age": 30}
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "age"


# ---------------------------------------------------------------------------
# Test Group 2: Salary slips
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_salary_slip_preview(client: AsyncClient) -> None:
    data = DEMO_SLIPS["meera"]
    response = await client.post("/api/salary-slips/preview", json=data["slip"])
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["gross_salary"] == data["expected"]["gross_salary"]
    assert body["tds"] == data["expected"]["tds"]


@pytest.mark.asyncio
async def test_salary_slip_business_rule_violation(client: AsyncClient) -> None:
    payload = dict(DEMO_SLIPS["meera"]["slip"], lop_days=40)
    response = await client.post("/api/salary-slips/preview", json=payload)
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "lop_days"


@pytest.mark.asyncio
async def test_create_salary_slip_uses_stored_ytd(client: AsyncClient) -> None:
    payload = dict(DEMO_SLIPS["meera"]["slip"], salary_month=5)
    with patch("payroll.store.get_salary_slip", new=AsyncMock(return_value=None)), \
         patch("payroll.store.get_ytd_totals", new=AsyncMock(return_value=(100_000.0, 6_283.0))) as ytd, \
         patch("payroll.store.save_salary_slip", new=AsyncMock(return_value="slip-1")) as save:
        response = await client.post("/api/salary-slips", json=payload)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["slip_id"] == "slip-1"
    assert body["ytd_gross"] == 200_000
    assert body["tds"] == 6_283
    ytd.assert_awaited_once()
    assert ytd.await_args.args[1:] == ("EMP001", "2024-25", 2)
    save.assert_awaited_once()


@pytest.mark.asyncio
async def test_duplicate_salary_slip_is_409(client: AsyncClient) -> None:
    with patch("payroll.store.get_salary_slip", new=AsyncMock(return_value=MagicMock())):
        response = await client.post("/api/salary-slips", json=DEMO_SLIPS["meera"]["slip"])
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


# ---------------------------------------------------------------------------
# Test Group 3: Settlements
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_settlement_preview(client: AsyncClient) -> None:
    data = DEMO_SETTLEMENTS["arjun"]
    response = await client.post("/api/settlements/preview", json=data["settlement"])
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["gratuity_amount"] == data["expected"]["gratuity_amount"]
    assert body["status"] == "draft"
    assert body["settlement_id"] is None


@pytest.mark.asyncio
async def test_settlement_inverted_dates_is_invalid_date(client: AsyncClient) -> None:
    payload = dict(
        DEMO_SETTLEMENTS["kavya"]["settlement"],
        date_of_joining="2025-01-01",
    )
    response = await client.post("/api/settlements/preview", json=payload)
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "INVALID_DATE"
    assert error["details"][0]["field"] == "date_of_leaving"


@pytest.mark.asyncio
async def test_create_settlement(client: AsyncClient) -> None:
    settlement = SettlementInput(**DEMO_SETTLEMENTS["kavya"]["settlement"])
    stored = preview_settlement(settlement).model_copy(update={"settlement_id": "set-1"})
    with patch("payroll.store.create_settlement", new=AsyncMock(return_value=stored)) as create:
        response = await client.post("/api/settlements", json=DEMO_SETTLEMENTS["kavya"]["settlement"])

    assert response.status_code == 201, response.text
    assert response.json()["settlement_id"] == "set-1"
    create.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_missing_settlement_is_404(client: AsyncClient) -> None:
    with patch("payroll.store.get_settlement", new=AsyncMock(return_value=None)):
        response = await client.get("/api/settlements/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_approve_settlement(client: AsyncClient) -> None:
    settlement = SettlementInput(**DEMO_SETTLEMENTS["kavya"]["settlement"])
    approved = preview_settlement(settlement).model_copy(
        update={"settlement_id": "set-1", "status": SettlementStatus.approved}
    )
    with patch("payroll.store.approve_settlement", new=AsyncMock(return_value=approved)):
        response = await client.post("/api/settlements/set-1/approve?approved_by=HR01")
    assert response.status_code == 200
    assert response.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_illegal_transition_is_409(client: AsyncClient) -> None:
    with patch("payroll.store.mark_settlement_paid", new=AsyncMock(side_effect=ValueError("not approved"))):
        response = await client.post(
            "/api/settlements/set-1/pay",
            json={"payment_mode": "neft", "payment_reference": "UTR1", "payment_date": "2024-07-01"},
        )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


# ---------------------------------------------------------------------------
# Test Group 4: TDS report
# ---------------------------------------------------------------------------

def _report_entries() -> list[TDSReportEntry]:
    return [
        TDSReportEntry(
            employee_id="EMP001", employee_name="Meera Nair", source_type=TDSSource.salary_slip,
            source_id="s1", month=4, year=2024, date="2024-04-01",
            gross_amount=100_000, tds_amount=6_283,
        ),
        TDSReportEntry(
            employee_id="EMP001", employee_name="Meera Nair", source_type=TDSSource.salary_slip,
            source_id="s2", month=7, year=2024, date="2024-07-01",
            gross_amount=100_000, tds_amount=6_283,
        ),
    ]


@pytest.mark.asyncio
async def test_tds_report_filters_by_month(client: AsyncClient) -> None:
    with patch("payroll.store.list_tds_entries", new=AsyncMock(return_value=_report_entries())):
        response = await client.get("/api/tds-report", params={"start": "2024-04", "end": "2024-06"})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["totals"]["total_entries"] == 1
    assert body["totals"]["total_tds"] == 6_283
    assert body["summaries"][0]["employee_name"] == "Meera Nair"


@pytest.mark.asyncio
async def test_tds_report_bad_month_is_422(client: AsyncClient) -> None:
    with patch("payroll.store.list_tds_entries", new=AsyncMock(return_value=[])):
        response = await client.get("/api/tds-report", params={"start": "2024-4"})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
