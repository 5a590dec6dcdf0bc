"""Tests for balance reads, history, coverage and admin adjustments."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from leave_ledger.exceptions import NoBalancePeriod
from leave_ledger.models.audit import AuditLog
from leave_ledger.services.balance import available_balance, can_cover, pending_quantity
from leave_ledger.services.employee import EmployeeInfo, InMemoryEmployeeService, set_employee_service

if TYPE_CHECKING:
    from collections.abc import Iterator

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()
AUTH_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
}
EMPLOYEE_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(EMPLOYEE_ID),
    "X-Role": "employee",
}
POLICIES_URL = f"/companies/{COMPANY_ID}/policies"
BALANCES_URL = f"/companies/{COMPANY_ID}/employees/{EMPLOYEE_ID}/balances"
ADJUSTMENTS_URL = f"/companies/{COMPANY_ID}/adjustments"


@pytest.fixture(autouse=True)
def _seed_employee_service() -> Iterator[None]:
    svc = InMemoryEmployeeService()
    svc.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            company_id=COMPANY_ID,
            first_name="Test",
            last_name="Employee",
            email="test@example.com",
        )
    )
    set_employee_service(svc)
    yield
    set_employee_service(InMemoryEmployeeService())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _create_policy(client: AsyncClient, code: str = "ANNUAL", **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "code": code,
        "name": "Annual leave",
        "unit": "DAYS",
        "accrual_rule": "25 days per year",
    }
    payload.update(overrides)
    resp = await client.post(POLICIES_URL, json=payload, headers=AUTH_HEADERS)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _run_accruals(client: AsyncClient, start: str, end: str, policy_id: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"period_start": start, "period_end": end}
    if policy_id is not None:
        body["policy_id"] = policy_id
    resp = await client.post(f"/companies/{COMPANY_ID}/accruals/run", json=body, headers=AUTH_HEADERS)
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _adjust(client: AsyncClient, policy_id: str, amount: str, **overrides: Any) -> Any:
    payload: dict[str, Any] = {
        "employee_id": str(EMPLOYEE_ID),
        "policy_id": policy_id,
        "effective_on": "2025-02-10",
        "amount": amount,
        "reason": "Correction",
    }
    payload.update(overrides)
    return await client.post(ADJUSTMENTS_URL, json=payload, headers=AUTH_HEADERS)


# ---------------------------------------------------------------------------
# Accrual runs
# ---------------------------------------------------------------------------


async def test_accrual_run_summary(async_client: AsyncClient) -> None:
    await _create_policy(async_client)

    first = await _run_accruals(async_client, "2025-01-01", "2025-04-01")
    again = await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    assert first["processed"] == 1
    assert first["opened"] == 1
    assert again["opened"] == 0
    assert again["unchanged"] == 1
    assert again["errors"] == 0


async def test_accrual_run_rejects_reversed_period(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        f"/companies/{COMPANY_ID}/accruals/run",
        json={"period_start": "2025-04-01", "period_end": "2025-01-01"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 422


async def test_accrual_run_is_admin_only(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        f"/companies/{COMPANY_ID}/accruals/run",
        json={"period_start": "2025-01-01", "period_end": "2025-04-01"},
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


async def test_balances_list_every_policy(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _create_policy(async_client, code="SICK", name="Sick leave", unit="HOURS", accrual_rule="40 hours per year")
    await _run_accruals(async_client, "2025-01-01", "2025-04-01", policy_id=annual["id"])

    resp = await async_client.get(f"{BALANCES_URL}?as_of=2025-02-10", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    by_code = {item["policy_code"]: item for item in data["items"]}
    assert Decimal(by_code["ANNUAL"]["period"]["closing"]) == Decimal("6.16")
    assert Decimal(by_code["ANNUAL"]["available"]) == Decimal("6.16")
    assert by_code["ANNUAL"]["period"]["period_start"] == "2025-01-01"
    # No period existed for SICK; one is opened on read.
    assert by_code["SICK"]["unit"] == "HOURS"
    assert by_code["SICK"]["period"]["period_start"] == "2025-01-01"
    assert Decimal(by_code["SICK"]["period"]["accrued"]) > 0


async def test_balances_show_pending_reservations(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")
    await async_client.post(
        f"/companies/{COMPANY_ID}/requests",
        json={
            "employee_id": str(EMPLOYEE_ID),
            "policy_id": annual["id"],
            "start_date": "2025-02-03",
            "end_date": "2025-02-04",
            "submit": True,
        },
        headers=EMPLOYEE_HEADERS,
    )

    data = (await async_client.get(f"{BALANCES_URL}?as_of=2025-02-10", headers=EMPLOYEE_HEADERS)).json()

    item = data["items"][0]
    assert Decimal(item["pending"]) == Decimal("2")
    assert Decimal(item["available"]) == Decimal("4.16")
    assert Decimal(item["period"]["closing"]) == Decimal("6.16")


async def test_balances_empty_without_policies(async_client: AsyncClient) -> None:
    resp = await async_client.get(BALANCES_URL, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"items": [], "total": 0}


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


async def test_history_is_newest_first_and_chained(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")
    await _run_accruals(async_client, "2025-04-01", "2025-07-01")

    resp = await async_client.get(f"{BALANCES_URL}/{annual['id']}/history", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    q2, q1 = data["items"]
    assert q2["period_start"] == "2025-04-01"
    assert q1["period_start"] == "2025-01-01"
    assert Decimal(q2["opening"]) == Decimal(q1["closing"])


async def test_history_unknown_policy(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BALANCES_URL}/{uuid.uuid4()}/history", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


async def test_coverage_with_default_quantity(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    resp = await async_client.get(
        f"{BALANCES_URL}/{annual['id']}/coverage",
        params={"start_date": "2025-02-03", "end_date": "2025-02-07"},
        headers=EMPLOYEE_HEADERS,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert Decimal(data["quantity"]) == Decimal("5")
    assert Decimal(data["available"]) == Decimal("6.16")
    assert data["can_cover"] is True


async def test_coverage_exceeding_balance(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    resp = await async_client.get(
        f"{BALANCES_URL}/{annual['id']}/coverage",
        params={"start_date": "2025-02-03", "end_date": "2025-02-11"},
        headers=EMPLOYEE_HEADERS,
    )

    data = resp.json()
    assert Decimal(data["quantity"]) == Decimal("7")
    assert data["can_cover"] is False


async def test_coverage_reversed_dates(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)

    resp = await async_client.get(
        f"{BALANCES_URL}/{annual['id']}/coverage",
        params={"start_date": "2025-02-07", "end_date": "2025-02-03"},
        headers=EMPLOYEE_HEADERS,
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidPeriod"


# ---------------------------------------------------------------------------
# Projector functions
# ---------------------------------------------------------------------------


async def test_available_balance_without_period(db_session: AsyncSession) -> None:
    with pytest.raises(NoBalancePeriod):
        await available_balance(db_session, EMPLOYEE_ID, uuid.uuid4(), date(2025, 2, 3))


async def test_pending_quantity_is_zero_without_requests(db_session: AsyncSession) -> None:
    assert await pending_quantity(db_session, EMPLOYEE_ID, uuid.uuid4(), date(2025, 1, 1)) == Decimal("0")


async def test_can_cover_boundary(async_client: AsyncClient, db_session: AsyncSession) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")
    policy_id = uuid.UUID(annual["id"])

    assert await can_cover(db_session, EMPLOYEE_ID, policy_id, date(2025, 2, 3), date(2025, 2, 3), Decimal("6.16"))
    assert not await can_cover(
        db_session, EMPLOYEE_ID, policy_id, date(2025, 2, 3), date(2025, 2, 3), Decimal("6.17")
    )


# ---------------------------------------------------------------------------
# Adjustments
# ---------------------------------------------------------------------------


async def test_positive_adjustment(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    resp = await _adjust(async_client, annual["id"], "1.5")

    assert resp.status_code == 201
    data = resp.json()
    assert Decimal(data["adjusted"]) == Decimal("1.5")
    assert Decimal(data["closing"]) == Decimal("7.66")
    assert data["version"] == 2


async def test_negative_adjustment_to_zero(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    resp = await _adjust(async_client, annual["id"], "-6.16")

    assert resp.status_code == 201
    assert Decimal(resp.json()["closing"]) == Decimal("0")


async def test_negative_adjustment_cannot_overdraw(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    resp = await _adjust(async_client, annual["id"], "-6.17")

    assert resp.status_code == 400
    assert resp.json()["error"] == "InsufficientBalance"
    history = (await async_client.get(f"{BALANCES_URL}/{annual['id']}/history", headers=AUTH_HEADERS)).json()
    assert Decimal(history["items"][0]["closing"]) == Decimal("6.16")


async def test_zero_adjustment_is_invalid(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)

    resp = await _adjust(async_client, annual["id"], "0")

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidRequest"


async def test_adjustment_opens_missing_period(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)

    resp = await _adjust(async_client, annual["id"], "2", effective_on="2025-06-15")

    assert resp.status_code == 201
    data = resp.json()
    assert data["period_start"] == "2025-01-01"
    assert Decimal(data["adjusted"]) == Decimal("2")


async def test_adjustment_unknown_policy(async_client: AsyncClient) -> None:
    resp = await _adjust(async_client, str(uuid.uuid4()), "1")
    assert resp.status_code == 404


async def test_adjustment_is_admin_only(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)

    resp = await async_client.post(
        ADJUSTMENTS_URL,
        json={
            "employee_id": str(EMPLOYEE_ID),
            "policy_id": annual["id"],
            "effective_on": "2025-02-10",
            "amount": "5",
            "reason": "Gift",
        },
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 403


async def test_adjustment_requires_reason(async_client: AsyncClient) -> None:
    annual = await _create_policy(async_client)

    resp = await _adjust(async_client, annual["id"], "1", reason="")

    assert resp.status_code == 422


async def test_adjustment_writes_audit(async_client: AsyncClient, db_session: AsyncSession) -> None:
    annual = await _create_policy(async_client)
    await _run_accruals(async_client, "2025-01-01", "2025-04-01")

    period = (await _adjust(async_client, annual["id"], "-1", reason="Paid out")).json()

    result = await db_session.execute(
        select(AuditLog).where(
            col(AuditLog.entity_id) == uuid.UUID(period["id"]),
            col(AuditLog.action) == "ADJUST",
        )
    )
    entry = result.scalar_one()
    assert entry.actor_id == ADMIN_ID
    assert entry.after_json["reason"] == "Paid out"
    assert Decimal(entry.before_json["adjusted"]) == Decimal("0")
    assert Decimal(entry.after_json["adjusted"]) == Decimal("-1")


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


async def test_employee_cannot_read_someone_elses_balances(async_client: AsyncClient) -> None:
    other_url = f"/companies/{COMPANY_ID}/employees/{uuid.uuid4()}/balances"

    as_employee = await async_client.get(other_url, headers=EMPLOYEE_HEADERS)
    as_admin = await async_client.get(other_url, headers=AUTH_HEADERS)

    assert as_employee.status_code == 403
    assert as_admin.status_code == 200
