"""
Request Guard - resolves the caller and checks one capability per request.

A request moves through:

    Received -> SessionResolved{none|some} -> PrincipalResolved{none|some}
             -> CapabilityChecked{allowed|denied} -> Executed

No session rejects with 401 before any capability is evaluated. A session
without an admin principal, or a principal lacking the capability, rejects
with 403. Rejection bodies never name the missing capability.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..domain.ports.session import CredentialSource, SessionResolver
from ..errors import AuthError, PermissionError
from ..rbac.permissions import Permission, has_permission
from ..rbac.routes import RouteAccessMap
from ..schemas.admin import Principal

logger = logging.getLogger("autobid_admin.rbac")


class RequestGuard:
    def __init__(self, resolver: SessionResolver):
        self.resolver = resolver

    async def resolve_principal(self, source: CredentialSource) -> Principal | None:
        """Principal for the caller, or None when either lookup comes back empty."""
        token = await self.resolver.get_current_session(source)
        if token is None:
            return None
        return await self.resolver.get_principal_for_session(token)

    async def authorize(
        self,
        source: CredentialSource,
        permission: Permission | None,
        *,
        operation: str = "",
    ) -> Principal:
        """Return the principal allowed to run ``operation``.

        Raises:
            AuthError: No resolvable session (401)
            PermissionError: No admin principal, or capability missing (403)
        """
        token = await self.resolver.get_current_session(source)
        if token is None:
            logger.info("Rejected unauthenticated request operation=%s", operation)
            raise AuthError()

        principal = await self.resolver.get_principal_for_session(token)
        if principal is None:
            logger.warning(
                "Rejected session without admin principal subject=%s operation=%s",
                token.subject,
                operation,
            )
            raise PermissionError()

        if permission is not None and not has_permission(principal.role, permission):
            logger.warning(
                "Access denied admin_id=%s role=%s permission=%s operation=%s",
                principal.id,
                principal.role,
                permission.value,
                operation,
            )
            raise PermissionError()

        return principal


class NavigationOutcome(str, Enum):
    ALLOW = "allow"
    LOGIN = "login"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class NavigationDecision:
    outcome: NavigationOutcome
    redirect_to: str | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is NavigationOutcome.ALLOW


def guard_navigation(
    principal: Principal | None,
    path: str,
    *,
    route_map: RouteAccessMap,
    login_path: str,
    unauthorized_path: str,
) -> NavigationDecision:
    """Decide whether a UI route may render for ``principal``.

    The access-denied page is reachable by anyone; the dashboard home only
    needs an authenticated admin.
    """
    if path == unauthorized_path:
        return NavigationDecision(NavigationOutcome.ALLOW)
    if principal is None:
        return NavigationDecision(NavigationOutcome.LOGIN, login_path)
    if path == "/" or route_map.can_access(principal.role, path):
        return NavigationDecision(NavigationOutcome.ALLOW)
    return NavigationDecision(NavigationOutcome.UNAUTHORIZED, unauthorized_path)
