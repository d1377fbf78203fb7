"""Role-Based Access Control (RBAC) service.

Maps staff roles to the clinic operations they may perform.
"""

from enum import Enum

from clinicdesk.models.user import UnknownRoleError, UserRole, normalize_role


class Permission(str, Enum):
    """Available permissions in the system."""

    # Calendar and appointments
    SCHEDULE_READ = "schedule:read"
    APPOINTMENTS_WRITE = "appointments:write"
    APPOINTMENTS_STATUS = "appointments:status"
    APPOINTMENTS_ASSIGN = "appointments:assign"
    APPOINTMENTS_DELETE = "appointments:delete"

    # Patient records
    PATIENTS_READ = "patients:read"
    PATIENTS_WRITE = "patients:write"
    PATIENTS_DELETE = "patients:delete"

    # Clinic settings
    CLINIC_SETTINGS_READ = "clinic:settings:read"
    CLINIC_SETTINGS_WRITE = "clinic:settings:write"  # Admin-only: working hours, overrides
    TASK_SETTINGS_WRITE = "tasks:settings:write"  # Admin-only: dashboard task roles

    # Dashboard
    DASHBOARD_READ = "dashboard:read"

    # Payments
    PAYMENTS_READ = "payments:read"
    PAYMENTS_WRITE = "payments:write"

    # System administration
    ADMIN_ALL = "admin:all"


_STAFF_COMMON = {
    Permission.SCHEDULE_READ,
    Permission.PATIENTS_READ,
    Permission.CLINIC_SETTINGS_READ,
    Permission.DASHBOARD_READ,
}

_ADMIN_PERMISSIONS = {
    *_STAFF_COMMON,
    Permission.APPOINTMENTS_WRITE,
    Permission.APPOINTMENTS_STATUS,
    Permission.APPOINTMENTS_ASSIGN,
    Permission.APPOINTMENTS_DELETE,
    Permission.CLINIC_SETTINGS_WRITE,
    Permission.PATIENTS_WRITE,
    Permission.PATIENTS_DELETE,
    Permission.TASK_SETTINGS_WRITE,
    Permission.PAYMENTS_READ,
    Permission.PAYMENTS_WRITE,
    Permission.ADMIN_ALL,
}

# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.SUPER_ADMIN: set(_ADMIN_PERMISSIONS),
    UserRole.ADMIN: set(_ADMIN_PERMISSIONS),
    UserRole.DOCTOR: {
        *_STAFF_COMMON,
        Permission.APPOINTMENTS_WRITE,
        Permission.APPOINTMENTS_STATUS,
        Permission.PATIENTS_WRITE,
        Permission.PAYMENTS_READ,
    },
    UserRole.RECEPTION: {
        *_STAFF_COMMON,
        Permission.APPOINTMENTS_WRITE,
        Permission.APPOINTMENTS_STATUS,
        Permission.APPOINTMENTS_ASSIGN,
        Permission.APPOINTMENTS_DELETE,
        Permission.PATIENTS_WRITE,
        Permission.PATIENTS_DELETE,
        Permission.PAYMENTS_READ,
        Permission.PAYMENTS_WRITE,
    },
    UserRole.FINANCE: {
        *_STAFF_COMMON,
        Permission.PAYMENTS_READ,
        Permission.PAYMENTS_WRITE,
    },
}


class RBACService:
    """Service for checking role-based permissions."""

    @staticmethod
    def get_permissions(role: UserRole | str) -> set[Permission]:
        """Get all permissions for a role.

        Args:
            role: User role, as enum or stored string

        Returns:
            Set of permissions granted to the role; empty for unknown roles
        """
        try:
            return ROLE_PERMISSIONS.get(normalize_role(role), set())
        except UnknownRoleError:
            return set()

    @staticmethod
    def has_permission(role: UserRole | str, permission: Permission) -> bool:
        """Check if a role has a specific permission.

        Args:
            role: User role to check
            permission: Permission to verify

        Returns:
            True if role has permission
        """
        return permission in RBACService.get_permissions(role)

    @staticmethod
    def has_any_permission(role: UserRole | str, permissions: list[Permission]) -> bool:
        """Check if a role has any of the specified permissions."""
        role_permissions = RBACService.get_permissions(role)
        return any(p in role_permissions for p in permissions)

    @staticmethod
    def has_all_permissions(role: UserRole | str, permissions: list[Permission]) -> bool:
        """Check if a role has all specified permissions.

        Args:
            role: User role to check
            permissions: List of permissions (all must match)

        Returns:
            True if role has all permissions
        """
        role_permissions = RBACService.get_permissions(role)
        return all(p in role_permissions for p in permissions)
