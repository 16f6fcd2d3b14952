from fastapi import APIRouter

from keyvault.api.v1.account import router as account_router
from keyvault.api.v1.audit import router as audit_router
from keyvault.api.v1.auth import router as auth_router
from keyvault.api.v1.dashboard import router as dashboard_router
from keyvault.api.v1.keys import router as keys_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(auth_router)
api_v1_router.include_router(account_router)
api_v1_router.include_router(keys_router)
api_v1_router.include_router(audit_router)
api_v1_router.include_router(dashboard_router)
