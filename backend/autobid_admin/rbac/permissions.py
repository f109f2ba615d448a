"""
RBAC Core - Admin roles, capabilities and the role-to-capability table.

The table is process-wide constant configuration: every declared role has
an entry (possibly empty) and nothing mutates it at runtime.

SECURITY:
- No wildcard capabilities
- Unknown roles are granted nothing
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping


class AdminRole(str, Enum):
    """Administrative roles. A principal holds exactly one."""

    SUPER_ADMIN = "super_admin"
    MODERATOR = "moderator"
    OPERATIONS_ADMIN = "operations_admin"
    FINANCE_ADMIN = "finance_admin"
    SUPPORT_ADMIN = "support_admin"


class Permission(str, Enum):
    """Capabilities, one per action category."""

    # Dashboard
    DASHBOARD_VIEW = "dashboard.view"

    # KYC
    KYC_REVIEW = "kyc.review"
    KYC_APPROVE = "kyc.approve"

    # Auctions
    AUCTION_MONITOR = "auction.monitor"
    AUCTION_CANCEL = "auction.cancel"
    AUCTION_FLAG = "auction.flag"

    # Payments
    PAYMENT_VERIFY = "payment.verify"
    PAYMENT_REFUND = "payment.refund"

    # Users
    USER_VIEW = "user.view"
    USER_EDIT = "user.edit"
    USER_SUSPEND = "user.suspend"

    # Support
    SUPPORT_VIEW = "support.view"
    SUPPORT_REPLY = "support.reply"

    # Reports
    REPORTS_FINANCIAL = "reports.financial"
    REPORTS_GENERATE = "reports.generate"

    # System
    SYSTEM_CONFIG = "system.config"
    AUDIT_VIEW = "audit.view"


ROLE_PERMISSIONS: Final[Mapping[AdminRole, frozenset[Permission]]] = MappingProxyType({
    AdminRole.SUPER_ADMIN: frozenset(Permission),

    AdminRole.MODERATOR: frozenset({
        Permission.DASHBOARD_VIEW,
        Permission.AUCTION_MONITOR,
        Permission.AUCTION_FLAG,
    }),

    AdminRole.OPERATIONS_ADMIN: frozenset({
        Permission.DASHBOARD_VIEW,
        Permission.KYC_REVIEW,
        Permission.KYC_APPROVE,
        Permission.USER_VIEW,
        Permission.USER_EDIT,
    }),

    AdminRole.FINANCE_ADMIN: frozenset({
        Permission.DASHBOARD_VIEW,
        Permission.PAYMENT_VERIFY,
        Permission.PAYMENT_REFUND,
        Permission.REPORTS_FINANCIAL,
    }),

    AdminRole.SUPPORT_ADMIN: frozenset({
        Permission.DASHBOARD_VIEW,
        Permission.SUPPORT_VIEW,
        Permission.SUPPORT_REPLY,
        Permission.USER_VIEW,
    }),
})


def permissions_for(role: AdminRole | str | None) -> frozenset[Permission]:
    """Capabilities bound to ``role``; empty for unknown roles."""
    if role is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role, frozenset())  # type: ignore[arg-type]


def has_permission(role: AdminRole | str | None, permission: Permission | str) -> bool:
    """Return True iff ``permission`` is in the set bound to ``role``.

    Pure: no I/O, no caching. Roles missing from the table are denied.
    """
    return permission in permissions_for(role)
