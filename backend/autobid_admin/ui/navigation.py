from typing import Final

from ..rbac.permissions import AdminRole
from ..rbac.routes import RouteAccessMap
from ..schemas.admin import NavigationItem

# Sidebar entries in display order
NAV_ITEMS: Final[tuple[NavigationItem, ...]] = (
    NavigationItem(label="Dashboard", href="/"),
    NavigationItem(label="Auction Monitoring", href="/auctions/monitor"),
    NavigationItem(label="KYC Review", href="/kyc/queue"),
    NavigationItem(label="Payment Verification", href="/payments/verify"),
    NavigationItem(label="User Management", href="/users"),
    NavigationItem(label="System Settings", href="/settings"),
)


def navigation_for(role: AdminRole | str, route_map: RouteAccessMap) -> list[NavigationItem]:
    """Sidebar entries ``role`` may open. The dashboard home is always listed."""
    return [
        item
        for item in NAV_ITEMS
        if item.href == "/" or route_map.can_access(role, item.href)
    ]
