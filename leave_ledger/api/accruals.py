# ruff: noqa: TC001
"""Admin trigger for period accrual runs."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from leave_ledger.api.deps import AdminDep, validate_company_scope
from leave_ledger.db import SessionDep
from leave_ledger.schemas.accrual import AccrualRunPayload, AccrualRunResponse
from leave_ledger.services.accrual import run_period_accruals

accruals_router = APIRouter(
    prefix="/companies/{company_id}/accruals",
    tags=["accruals"],
    dependencies=[Depends(validate_company_scope)],
)


@accruals_router.post("/run", response_model=AccrualRunResponse)
async def run_accruals(
    payload: AccrualRunPayload,
    session: SessionDep,
    auth: AdminDep,
) -> AccrualRunResponse:
    """Open a ledger period for every employee and policy of the company.

    Useful for backfills and period boundaries outside the worker schedule.
    Re-running the same period is a no-op.
    """
    result = await run_period_accruals(
        session,
        payload.period_start,
        payload.period_end,
        company_id=auth.company_id,
        policy_id=payload.policy_id,
    )
    return AccrualRunResponse(
        period_start=result.period_start,
        period_end=result.period_end,
        processed=result.processed,
        opened=result.opened,
        superseded=result.superseded,
        unchanged=result.unchanged,
        errors=result.errors,
    )
