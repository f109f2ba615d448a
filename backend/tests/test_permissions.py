import pytest

from autobid_admin.rbac import (
    ROLE_PERMISSIONS,
    AdminRole,
    Permission,
    has_permission,
    permissions_for,
)


def test_every_role_has_a_table_entry() -> None:
    assert set(ROLE_PERMISSIONS) == set(AdminRole)


def test_super_admin_holds_every_capability() -> None:
    for permission in Permission:
        assert has_permission(AdminRole.SUPER_ADMIN, permission)
    for permissions in ROLE_PERMISSIONS.values():
        assert permissions <= ROLE_PERMISSIONS[AdminRole.SUPER_ADMIN]


def test_every_role_can_view_dashboard() -> None:
    for role in AdminRole:
        assert has_permission(role, Permission.DASHBOARD_VIEW)


@pytest.mark.parametrize(
    ("role", "permission", "expected"),
    [
        ("moderator", "auction.flag", True),
        ("moderator", "auction.monitor", True),
        ("moderator", "kyc.review", False),
        ("moderator", "auction.cancel", False),
        ("operations_admin", "kyc.approve", True),
        ("operations_admin", "payment.verify", False),
        ("finance_admin", "reports.financial", True),
        ("finance_admin", "auction.flag", False),
        ("support_admin", "support.reply", True),
        ("support_admin", "auction.flag", False),
        ("support_admin", "user.edit", False),
    ],
)
def test_has_permission_matches_table(role: str, permission: str, expected: bool) -> None:
    assert has_permission(role, permission) is expected
    assert has_permission(AdminRole(role), Permission(permission)) is expected


def test_has_permission_is_exact_membership() -> None:
    for role, granted in ROLE_PERMISSIONS.items():
        for permission in Permission:
            assert has_permission(role, permission) is (permission in granted)


@pytest.mark.parametrize("role", ["auditor", "", "SUPER_ADMIN", None])
def test_unknown_role_is_denied_everything(role: str | None) -> None:
    assert permissions_for(role) == frozenset()
    for permission in Permission:
        assert not has_permission(role, permission)


def test_unknown_capability_is_denied() -> None:
    assert not has_permission(AdminRole.SUPER_ADMIN, "auction.delete")


def test_table_cannot_be_mutated() -> None:
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS[AdminRole.MODERATOR] = frozenset(Permission)  # type: ignore[index]
    with pytest.raises(AttributeError):
        ROLE_PERMISSIONS[AdminRole.MODERATOR].add(Permission.KYC_REVIEW)  # type: ignore[attr-defined]
