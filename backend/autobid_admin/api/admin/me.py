from fastapi import APIRouter, Depends

from ...auth.dependencies import require_operation
from ...dependencies import get_route_map
from ...rbac.permissions import permissions_for
from ...rbac.routes import RouteAccessMap
from ...schemas.admin import CurrentAdminRead, Principal
from ...ui.navigation import navigation_for

router = APIRouter(prefix="/admin", tags=["admin-session"])


@router.get("/me", response_model=CurrentAdminRead)
async def get_current_admin(
    principal: Principal = Depends(require_operation("GET", "/admin/me")),
    route_map: RouteAccessMap = Depends(get_route_map),
) -> CurrentAdminRead:
    """The caller's identity, role, capabilities and reachable navigation.

    The console refetches this on every session change and drops it on logout.
    """
    return CurrentAdminRead(
        id=principal.id,
        email=principal.email,
        role=principal.role,
        permissions=sorted(permission.value for permission in permissions_for(principal.role)),
        navigation=navigation_for(principal.role, route_map),
    )
