from typing import Iterable, FrozenSet

from hotel_ledger.models.user import User, UserRole


# Roles allowed to create/update/delete ledger rows and record payments
EDIT_ROLES: FrozenSet[str] = frozenset({UserRole.ADMIN.value, UserRole.ACCOUNTANT.value})

# Roles allowed to read accounts
VIEW_ROLES: FrozenSet[str] = frozenset({
    UserRole.ADMIN.value,
    UserRole.ACCOUNTANT.value,
    UserRole.MANAGER.value,
})


class PermissionChecker:
    """
    Role checks for the accounts module.
    SUPERADMIN automatically passes every check.
    """

    def __init__(self, user: User):
        self.user = user
        self.role = user.role

    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPERADMIN.value

    def has_any_role(self, roles: Iterable[str]) -> bool:
        if self.is_super_admin():
            return True
        return self.role in set(roles)

    def can_edit(self) -> bool:
        return self.has_any_role(EDIT_ROLES)

    def can_view(self) -> bool:
        return self.has_any_role(VIEW_ROLES)
