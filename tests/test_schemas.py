"""Unit tests for request/response schema validation."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from leave_ledger.models.enums import AccrualCadence, LeaveUnit
from leave_ledger.schemas.accrual import AccrualRunPayload
from leave_ledger.schemas.balance import CreateAdjustmentRequest
from leave_ledger.schemas.policy import AccrualRule, CreatePolicyRequest, UpdatePolicyRequest
from leave_ledger.schemas.request import CreateRequestPayload, RejectPayload

# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


def test_policy_code_is_normalized() -> None:
    req = CreatePolicyRequest(code=" annual ", name="Annual", unit=LeaveUnit.DAYS, accrual_rule="25 days per year")
    assert req.code == "ANNUAL"


@pytest.mark.parametrize("code", ["", "WAY_TOO_LONG_CODE", "HAS SPACE", "émoji"])
def test_policy_code_rejects_bad_values(code: str) -> None:
    with pytest.raises(ValidationError):
        CreatePolicyRequest(code=code, name="Annual", unit=LeaveUnit.DAYS, accrual_rule="25 days per year")


def test_policy_accepts_structured_rule() -> None:
    req = CreatePolicyRequest.model_validate(
        {
            "code": "SICK",
            "name": "Sick",
            "unit": "HOURS",
            "accrual_rule": {"amount": "1.5", "cadence": "PER_WEEK"},
        }
    )
    assert req.accrual_rule == AccrualRule(amount=Decimal("1.5"), cadence=AccrualCadence.PER_WEEK)


def test_policy_keeps_rule_text_for_the_service() -> None:
    req = CreatePolicyRequest(code="A", name="A", unit=LeaveUnit.DAYS, accrual_rule="2 days a month")
    assert req.accrual_rule == "2 days a month"


def test_policy_rejects_unknown_unit() -> None:
    with pytest.raises(ValidationError):
        CreatePolicyRequest.model_validate(
            {"code": "A", "name": "A", "unit": "WEEKS", "accrual_rule": "2 days a month"}
        )


def test_policy_rejects_negative_cap() -> None:
    with pytest.raises(ValidationError):
        CreatePolicyRequest(
            code="A",
            name="A",
            unit=LeaveUnit.DAYS,
            accrual_rule="2 days a month",
            carry_over_max=Decimal("-0.01"),
        )


def test_update_policy_defaults_to_no_change() -> None:
    req = UpdatePolicyRequest()
    assert req.model_dump(exclude_defaults=True) == {}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def _request_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "employee_id": str(uuid.uuid4()),
        "policy_id": str(uuid.uuid4()),
        "start_date": "2025-02-03",
        "end_date": "2025-02-07",
    }
    payload.update(overrides)
    return payload


def test_request_single_day_is_valid() -> None:
    req = CreateRequestPayload.model_validate(_request_payload(end_date="2025-02-03"))
    assert req.start_date == req.end_date == date(2025, 2, 3)
    assert req.submit is False


def test_request_rejects_reversed_dates() -> None:
    with pytest.raises(ValidationError, match="end_date"):
        CreateRequestPayload.model_validate(_request_payload(start_date="2025-02-07", end_date="2025-02-03"))


@pytest.mark.parametrize("quantity", ["0", "-1", "1.234"])
def test_request_rejects_bad_quantity(quantity: str) -> None:
    with pytest.raises(ValidationError):
        CreateRequestPayload.model_validate(_request_payload(quantity=quantity))


def test_reject_requires_reason() -> None:
    with pytest.raises(ValidationError):
        RejectPayload(reason="")


# ---------------------------------------------------------------------------
# Adjustments and accrual runs
# ---------------------------------------------------------------------------


def test_adjustment_accepts_negative_amount() -> None:
    req = CreateAdjustmentRequest.model_validate(
        {
            "employee_id": str(uuid.uuid4()),
            "policy_id": str(uuid.uuid4()),
            "effective_on": "2025-02-03",
            "amount": "-2.5",
            "reason": "Payout",
        }
    )
    assert req.amount == Decimal("-2.5")


def test_adjustment_rejects_extra_precision() -> None:
    with pytest.raises(ValidationError):
        CreateAdjustmentRequest.model_validate(
            {
                "employee_id": str(uuid.uuid4()),
                "policy_id": str(uuid.uuid4()),
                "effective_on": "2025-02-03",
                "amount": "1.005",
                "reason": "Payout",
            }
        )


def test_accrual_run_requires_forward_period() -> None:
    with pytest.raises(ValidationError):
        AccrualRunPayload(period_start=date(2025, 1, 1), period_end=date(2025, 1, 1))
