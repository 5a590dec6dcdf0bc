# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leave_ledger.models.enums import Role


class AuthContext(BaseModel):
    """Caller identity forwarded by the upstream identity provider.

    ``user_id`` doubles as the employee id for employee callers.
    """

    company_id: uuid.UUID
    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def may_act_for(self, employee_id: uuid.UUID) -> bool:
        """Admins act for anyone; employees only for themselves."""
        return self.is_admin or employee_id == self.user_id
