"""Role-based access control for the admin console."""
from .operations import OPERATION_PERMISSIONS, permission_for_operation
from .permissions import (
    ROLE_PERMISSIONS,
    AdminRole,
    Permission,
    has_permission,
    permissions_for,
)
from .routes import (
    DEFAULT_ROUTE_MAP,
    ROUTE_PERMISSIONS,
    RouteAccessMap,
    RouteDefaultPolicy,
    can_access_route,
)

__all__ = [
    "AdminRole",
    "DEFAULT_ROUTE_MAP",
    "OPERATION_PERMISSIONS",
    "Permission",
    "ROLE_PERMISSIONS",
    "ROUTE_PERMISSIONS",
    "RouteAccessMap",
    "RouteDefaultPolicy",
    "can_access_route",
    "has_permission",
    "permission_for_operation",
    "permissions_for",
]
