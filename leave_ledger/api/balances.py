# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status

from leave_ledger.api.deps import AdminDep, AuthDep, validate_company_scope, validate_employee_scope
from leave_ledger.db import SessionDep
from leave_ledger.schemas.balance import (
    BalanceListResponse,
    CoverageResponse,
    CreateAdjustmentRequest,
    LedgerHistoryResponse,
    LedgerPeriodResponse,
)
from leave_ledger.services import balance as balance_service
from leave_ledger.services import ledger as ledger_service

employee_balance_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/balances",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope), Depends(validate_employee_scope)],
)

adjustment_router = APIRouter(
    prefix="/companies/{company_id}/adjustments",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope)],
)


@employee_balance_router.get("", response_model=BalanceListResponse)
async def get_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
) -> BalanceListResponse:
    """Current-period balances for every company policy."""
    return await balance_service.get_employee_balances(session, auth.company_id, employee_id, as_of)


@employee_balance_router.get("/{policy_id}/history", response_model=LedgerHistoryResponse)
async def get_balance_history(
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LedgerHistoryResponse:
    """Ledger periods for one policy, newest first."""
    return await balance_service.get_balance_history(
        session, auth.company_id, employee_id, policy_id, offset, limit
    )


@employee_balance_router.get("/{policy_id}/coverage", response_model=CoverageResponse)
async def get_coverage(
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    start_date: date = Query(),
    end_date: date = Query(),
    quantity: Decimal | None = Query(default=None, gt=0),
) -> CoverageResponse:
    """Check whether the balance covers a prospective request."""
    return await balance_service.get_coverage(
        session, auth.company_id, employee_id, policy_id, start_date, end_date, quantity
    )


@adjustment_router.post("", response_model=LedgerPeriodResponse, status_code=status.HTTP_201_CREATED)
async def create_adjustment(
    payload: CreateAdjustmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> LedgerPeriodResponse:
    """Apply a manual balance adjustment (admin only)."""
    return await ledger_service.apply_adjustment(session, auth, payload)
