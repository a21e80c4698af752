"""Role-Based Access Control (RBAC) service.

Authorization is a capability decision: callers ask for an
``AccessDecision`` and act on it, the services never inspect roles directly.
"""

from dataclasses import dataclass
from enum import Enum

from clinic_ledger.core.errors import NoPermission
from clinic_ledger.models.user import User, UserRole


class Permission(str, Enum):
    """Available permissions in the system."""

    # Catalog
    CATALOG_WRITE = "catalog:write"

    # Doctor schedules
    SCHEDULE_WRITE = "schedule:write"  # Own slots only
    SCHEDULE_MANAGE_ANY = "schedule:manage_any"

    # Bookings
    BOOKINGS_CREATE = "bookings:create"
    BOOKINGS_UPDATE = "bookings:update"  # Assigned doctor only
    BOOKINGS_OVERRIDE = "bookings:override"  # Any booking
    BOOKINGS_READ_ANY = "bookings:read_any"

    # Ledger
    CARDS_WRITE = "cards:write"
    PAYMENTS_CREATE = "payments:create"
    PAYMENTS_READ_ANY = "payments:read_any"

    # User management
    USERS_WRITE = "users:write"


ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.OWNER: {
        Permission.CATALOG_WRITE,
        Permission.SCHEDULE_MANAGE_ANY,
        Permission.BOOKINGS_OVERRIDE,
        Permission.BOOKINGS_READ_ANY,
        Permission.PAYMENTS_READ_ANY,
        Permission.USERS_WRITE,
    },
    UserRole.DIRECTOR: {
        Permission.CATALOG_WRITE,
        Permission.SCHEDULE_WRITE,
        Permission.SCHEDULE_MANAGE_ANY,
        Permission.BOOKINGS_UPDATE,
        Permission.BOOKINGS_OVERRIDE,
        Permission.BOOKINGS_READ_ANY,
        Permission.PAYMENTS_READ_ANY,
        Permission.USERS_WRITE,
    },
    UserRole.DOCTOR: {
        Permission.CATALOG_WRITE,
        Permission.SCHEDULE_WRITE,
        Permission.BOOKINGS_UPDATE,
        Permission.BOOKINGS_READ_ANY,
    },
    UserRole.CASHIER: {
        Permission.PAYMENTS_READ_ANY,
    },
    UserRole.PATIENT: {
        Permission.BOOKINGS_CREATE,
        Permission.CARDS_WRITE,
        Permission.PAYMENTS_CREATE,
    },
}


@dataclass
class AccessDecision:
    """Outcome of an authorization check.

    Attributes:
        allowed: Whether the action may proceed
        reason: Why access was refused (None when allowed)
    """

    allowed: bool
    reason: str | None = None

    def enforce(self) -> None:
        """Raise NoPermission when the decision is a refusal."""
        if not self.allowed:
            raise NoPermission(self.reason)


class RBACService:
    """Service for checking role-based permissions."""

    @staticmethod
    def get_permissions(role: UserRole | str) -> set[Permission]:
        """Get all permissions for a role."""
        try:
            return ROLE_PERMISSIONS.get(UserRole(role), set())
        except ValueError:
            return set()

    @staticmethod
    def has_permission(role: UserRole | str, permission: Permission) -> bool:
        """Check if a role has a specific permission."""
        return permission in RBACService.get_permissions(role)

    @staticmethod
    def has_all_permissions(role: UserRole | str, permissions: list[Permission]) -> bool:
        """Check if a role has all specified permissions."""
        role_permissions = RBACService.get_permissions(role)
        return all(p in role_permissions for p in permissions)

    @staticmethod
    def decide(actor: User, permission: Permission) -> AccessDecision:
        """Decide whether the actor's role grants ``permission``."""
        if not actor.is_active:
            return AccessDecision(False, "Account is disabled")
        if RBACService.has_permission(actor.role, permission):
            return AccessDecision(True)
        return AccessDecision(False, f"Permission denied: {permission.value}")

    @staticmethod
    def decide_owned(
        actor: User,
        owner_id: str,
        own_permission: Permission | None,
        any_permission: Permission | None,
    ) -> AccessDecision:
        """Decide access to a resource owned by ``owner_id``.

        The owner passes with ``own_permission`` (or with no permission at
        all when it is None); anyone else needs ``any_permission``, and
        nobody else passes when it is None.
        """
        if not actor.is_active:
            return AccessDecision(False, "Account is disabled")
        if actor.id == owner_id and (
            own_permission is None or RBACService.has_permission(actor.role, own_permission)
        ):
            return AccessDecision(True)
        if any_permission is not None and RBACService.has_permission(actor.role, any_permission):
            return AccessDecision(True)
        return AccessDecision(False, "Only the owner or an authorized role may do this")
