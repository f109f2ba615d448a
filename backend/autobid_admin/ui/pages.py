"""
Console page routes, guarded server-side.

Rendering lives in the console front end; these routes return page
descriptors only after the navigation guard allowed the path, so the
client-side check is never the only gate. Denials are 307 redirects to the
login page (no session) or the access-denied page (missing capability).
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from ..auth.guard import RequestGuard, guard_navigation
from ..config import settings
from ..dependencies import get_request_guard, get_route_map
from ..rbac.routes import RouteAccessMap

UNAUTHORIZED_PATH = "/unauthorized"

logger = logging.getLogger("autobid_admin.ui")

PAGES: dict[str, dict[str, Any]] = {
    "/": {
        "page": "dashboard",
        "title": "Dashboard",
        "description": "Welcome back to the AutoBid administration portal.",
        "data": ["/admin/dashboard-metrics"],
    },
    "/auctions/monitor": {
        "page": "auction_monitor",
        "title": "Live Auction Monitoring",
        "description": "Real-time status of active auctions and critical alerts.",
        "data": ["/admin/auctions/monitor", "/admin/auctions/monitor/stream"],
    },
    "/kyc/queue": {
        "page": "kyc_queue",
        "title": "KYC Review Queue",
        "description": "Manage and approve user identity verifications.",
        "pending": True,
    },
    "/payments/verify": {
        "page": "payment_verification",
        "title": "Payment Verification",
        "description": "Verify incoming payments for completed auctions.",
        "pending": True,
    },
    "/users": {
        "page": "user_management",
        "title": "User Management",
        "description": "Browse and manage platform users.",
        "pending": True,
    },
    "/settings": {
        "page": "system_settings",
        "title": "System Settings",
        "description": "Platform configuration.",
        "pending": True,
    },
    UNAUTHORIZED_PATH: {
        "page": "access_denied",
        "title": "Access Denied",
        "description": (
            "You do not have the necessary permissions to access this page. "
            "Please contact a Super Admin if you believe this is an error."
        ),
        "status": 403,
    },
}

router = APIRouter(tags=["console"])


def _page_handler(path: str, descriptor: dict[str, Any]) -> Callable[..., Awaitable[Response]]:
    async def render(
        request: Request,
        guard: RequestGuard = Depends(get_request_guard),
        route_map: RouteAccessMap = Depends(get_route_map),
    ) -> Response:
        principal = await guard.resolve_principal(request)
        decision = guard_navigation(
            principal,
            path,
            route_map=route_map,
            login_path=settings.login_path,
            unauthorized_path=UNAUTHORIZED_PATH,
        )
        if not decision.allowed:
            logger.info(
                "Navigation redirected path=%s outcome=%s role=%s",
                path,
                decision.outcome.value,
                principal.role if principal else None,
            )
            return RedirectResponse(decision.redirect_to or settings.login_path, status_code=307)
        return JSONResponse({"path": path, **descriptor})

    render.__name__ = f"page_{descriptor['page']}"
    return render


for _path, _descriptor in PAGES.items():
    router.add_api_route(
        _path,
        _page_handler(_path, _descriptor),
        methods=["GET"],
        include_in_schema=False,
    )
