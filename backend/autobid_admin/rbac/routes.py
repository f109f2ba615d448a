"""Route prefix to capability map for the admin console UI.

Matching is by plain string prefix. Entries are consulted longest prefix
first, ties broken by declaration order, so overlapping prefixes such as
``/reports`` and ``/reports/financial`` resolve the same way on every call.
"""
from __future__ import annotations

from enum import Enum
from typing import Final, Iterable

from .permissions import AdminRole, Permission, has_permission


class RouteDefaultPolicy(str, Enum):
    """Outcome for paths that no declared prefix covers."""

    ALLOW = "allow"
    DENY = "deny"


ROUTE_PERMISSIONS: Final[tuple[tuple[str, Permission], ...]] = (
    ("/kyc", Permission.KYC_REVIEW),
    ("/payments", Permission.PAYMENT_VERIFY),
    ("/auctions/monitor", Permission.AUCTION_MONITOR),
    ("/support", Permission.SUPPORT_VIEW),
    ("/reports", Permission.REPORTS_FINANCIAL),
    ("/settings", Permission.SYSTEM_CONFIG),
    ("/audit-logs", Permission.AUDIT_VIEW),
)


class RouteAccessMap:
    """Immutable prefix map with a deterministic lookup order."""

    def __init__(
        self,
        entries: Iterable[tuple[str, Permission]],
        default_policy: RouteDefaultPolicy | str = RouteDefaultPolicy.ALLOW,
    ) -> None:
        declared = tuple(entries)
        indexed = sorted(
            enumerate(declared),
            key=lambda item: (-len(item[1][0]), item[0]),
        )
        self._entries: tuple[tuple[str, Permission], ...] = tuple(
            entry for _, entry in indexed
        )
        self._default_policy = RouteDefaultPolicy(default_policy)

    @property
    def entries(self) -> tuple[tuple[str, Permission], ...]:
        return self._entries

    @property
    def default_policy(self) -> RouteDefaultPolicy:
        return self._default_policy

    def required_permission(self, path: str) -> Permission | None:
        for prefix, permission in self._entries:
            if path.startswith(prefix):
                return permission
        return None

    def can_access(self, role: AdminRole | str | None, path: str) -> bool:
        permission = self.required_permission(path)
        if permission is None:
            return self._default_policy is RouteDefaultPolicy.ALLOW
        return has_permission(role, permission)


DEFAULT_ROUTE_MAP: Final[RouteAccessMap] = RouteAccessMap(ROUTE_PERMISSIONS)


def can_access_route(
    role: AdminRole | str | None,
    route_path: str,
    route_map: RouteAccessMap = DEFAULT_ROUTE_MAP,
) -> bool:
    """Return whether ``role`` may open ``route_path``.

    The first entry (longest prefix first) whose prefix starts the path
    decides; uncovered paths follow the map's default policy.
    """
    return route_map.can_access(role, route_path)
