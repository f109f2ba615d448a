"""Declarative mapping of admin API operations to required capabilities.

Each key is a (METHOD, PATH) tuple as registered on the router. A value of
``None`` means any resolved admin principal may call the operation.
Operations may require a narrower capability than the UI route map implies.
"""
from __future__ import annotations

from typing import Final

from .permissions import Permission

OPERATION_PERMISSIONS: Final[dict[tuple[str, str], Permission | None]] = {
    ("GET", "/admin/me"): None,
    ("GET", "/admin/dashboard-metrics"): None,
    ("GET", "/admin/auctions/monitor"): Permission.AUCTION_MONITOR,
    ("WS", "/admin/auctions/monitor/stream"): Permission.AUCTION_MONITOR,
    ("POST", "/admin/auctions/{auction_id}/flag"): Permission.AUCTION_FLAG,
    ("GET", "/admin/audit-logs"): Permission.AUDIT_VIEW,
}


def permission_for_operation(method: str, path: str) -> Permission | None:
    """Capability required by a declared operation.

    Raises:
        KeyError: If the operation is not declared
    """
    return OPERATION_PERMISSIONS[(method.upper(), path)]
