import pytest

from cockpit.services.roles import (
    can_edit_profile,
    can_manage_role,
    highest_role,
    is_admin_role,
    is_valid_role,
)


class TestHighestRole:
    @pytest.mark.parametrize(
        "roles,expected",
        [
            (["sales", "admin"], "admin"),
            (["sales_support", "super_admin", "admin"], "super_admin"),
            (["sales", "sales_support"], "sales_support"),
            (["sales"], "sales"),
            ([], None),
        ],
    )
    def test_precedence(self, roles, expected):
        assert highest_role(roles) == expected

    def test_unknown_roles_are_ignored(self):
        assert highest_role(["owner", "sales-support", "sales"]) == "sales"
        assert highest_role(["owner"]) is None


def test_admin_view_roles():
    assert is_admin_role("admin")
    assert is_admin_role("super_admin")
    assert not is_admin_role("sales_support")
    assert not is_admin_role("sales")
    assert not is_admin_role(None)


def test_valid_roles():
    assert is_valid_role("sales_support")
    assert not is_valid_role("sales-support")


class TestCanEditProfile:
    def test_anyone_may_edit_self(self):
        assert can_edit_profile("sales", "sales", is_self=True)
        assert can_edit_profile(None, None, is_self=True)

    def test_super_admin_edits_anyone(self):
        assert can_edit_profile("super_admin", "admin", is_self=False)
        assert can_edit_profile("super_admin", "super_admin", is_self=False)

    def test_admin_cannot_edit_admins(self):
        assert can_edit_profile("admin", "sales", is_self=False)
        assert can_edit_profile("admin", None, is_self=False)
        assert not can_edit_profile("admin", "admin", is_self=False)
        assert not can_edit_profile("admin", "super_admin", is_self=False)

    def test_sales_cannot_edit_others(self):
        assert not can_edit_profile("sales", "sales", is_self=False)


class TestCanManageRole:
    def test_super_admin_manages_every_role(self):
        assert can_manage_role("super_admin", "super_admin")
        assert can_manage_role("super_admin", "sales")

    def test_admin_manages_non_admin_roles_only(self):
        assert can_manage_role("admin", "sales_support")
        assert not can_manage_role("admin", "admin")
        assert not can_manage_role("admin", "super_admin")

    def test_unknown_role_is_never_manageable(self):
        assert not can_manage_role("super_admin", "owner")

    def test_sales_manages_nothing(self):
        assert not can_manage_role("sales", "sales")
