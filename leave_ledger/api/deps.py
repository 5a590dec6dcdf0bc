# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path

from leave_ledger.exceptions import Forbidden
from leave_ledger.models.enums import Role
from leave_ledger.schemas.auth import AuthContext


async def get_auth_context(
    x_company_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: Role = Header(default=Role.EMPLOYEE),
) -> AuthContext:
    """Build the caller identity from gateway headers. Unknown roles are a 422."""
    return AuthContext(company_id=x_company_id, user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(auth: AuthDep) -> AuthContext:
    if not auth.is_admin:
        raise Forbidden("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def validate_company_scope(
    company_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Every route lives under /companies/{company_id}; it must match the caller's company."""
    if company_id != auth.company_id:
        raise Forbidden("Company ID mismatch")
    return auth


async def validate_employee_scope(
    employee_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Employees may only read their own balances."""
    if not auth.may_act_for(employee_id):
        raise Forbidden("Employees can only view their own balances")
    return auth
