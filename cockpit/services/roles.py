from typing import Iterable, Optional

# Highest privilege first
USER_ROLES = ("super_admin", "admin", "sales_support", "sales")
ADMIN_ROLES = frozenset({"super_admin", "admin"})
# Roles that see every call summary, not just their own
SUMMARY_READ_ALL_ROLES = frozenset({"super_admin", "admin", "sales_support"})


def is_valid_role(role) -> bool:
    return role in USER_ROLES


def highest_role(roles: Iterable[str]) -> Optional[str]:
    """Pick the highest-precedence known role, ignoring unknown strings."""
    present = {r for r in roles if is_valid_role(r)}
    for role in USER_ROLES:
        if role in present:
            return role
    return None


def is_admin_role(role: Optional[str]) -> bool:
    return role in ADMIN_ROLES


def can_edit_profile(caller_role: Optional[str], target_role: Optional[str], is_self: bool) -> bool:
    if is_self:
        return True
    if caller_role == "super_admin":
        return True
    if caller_role == "admin" and target_role not in ADMIN_ROLES:
        return True
    return False


def can_manage_role(caller_role: Optional[str], role: str) -> bool:
    """Whether the caller may grant or revoke `role` on another identity."""
    if not is_valid_role(role):
        return False
    if caller_role == "super_admin":
        return True
    if caller_role == "admin":
        return role not in ADMIN_ROLES
    return False
