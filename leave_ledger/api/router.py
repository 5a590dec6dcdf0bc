from fastapi import APIRouter

from leave_ledger.api.accruals import accruals_router
from leave_ledger.api.balances import adjustment_router, employee_balance_router
from leave_ledger.api.employees import employees_router
from leave_ledger.api.holidays import holidays_router
from leave_ledger.api.policies import router as policies_router
from leave_ledger.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(policies_router)
api_router.include_router(employee_balance_router)
api_router.include_router(adjustment_router)
api_router.include_router(requests_router)
api_router.include_router(accruals_router)
api_router.include_router(holidays_router)
api_router.include_router(employees_router)
