from fastapi import APIRouter

from expenseflow.api.approval_flows import approval_flows_router
from expenseflow.api.approvals import approvals_router
from expenseflow.api.expenses import expenses_router
from expenseflow.api.users import users_router

api_router = APIRouter()
api_router.include_router(expenses_router)
api_router.include_router(approvals_router)
api_router.include_router(approval_flows_router)
api_router.include_router(users_router)
