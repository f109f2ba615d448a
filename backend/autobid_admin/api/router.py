from fastapi import APIRouter

from .admin import auctions, audit_logs, dashboard, me

router = APIRouter()
router.include_router(me.router)
router.include_router(dashboard.router)
router.include_router(auctions.router)
router.include_router(audit_logs.router)
