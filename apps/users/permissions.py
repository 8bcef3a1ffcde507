"""Role and permission model for hotel staff.

Roles form a flat enumeration ranked by ``ROLE_HIERARCHY``; each role maps
to a default permission set in ``ROLE_PERMISSIONS``. A user's custom
permissions are added on top of the role defaults and can never remove
anything from them.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable

from shared.domain.errors import Forbidden

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .principal import Principal


class Permission(Enum):
    # Hotel management
    HOTEL_CREATE = 'hotel:create'
    HOTEL_READ = 'hotel:read'
    HOTEL_UPDATE = 'hotel:update'
    HOTEL_DELETE = 'hotel:delete'

    # User management
    USER_CREATE = 'user:create'
    USER_READ = 'user:read'
    USER_UPDATE = 'user:update'
    USER_DELETE = 'user:delete'

    # Rooms
    ROOM_CREATE = 'room:create'
    ROOM_READ = 'room:read'
    ROOM_UPDATE = 'room:update'
    ROOM_DELETE = 'room:delete'

    # Bookings
    BOOKING_CREATE = 'booking:create'
    BOOKING_READ = 'booking:read'
    BOOKING_UPDATE = 'booking:update'
    BOOKING_DELETE = 'booking:delete'
    BOOKING_CONFIRM = 'booking:confirm'
    BOOKING_CANCEL = 'booking:cancel'
    BOOKING_CHECKIN = 'booking:checkin'
    BOOKING_CHECKOUT = 'booking:checkout'

    # Guests
    GUEST_CREATE = 'guest:create'
    GUEST_READ = 'guest:read'
    GUEST_UPDATE = 'guest:update'
    GUEST_DELETE = 'guest:delete'

    # Finance
    PAYMENT_CREATE = 'payment:create'
    PAYMENT_READ = 'payment:read'
    PAYMENT_REFUND = 'payment:refund'
    REPORT_VIEW = 'report:view'
    REPORT_EXPORT = 'report:export'

    # Settings
    SETTINGS_READ = 'settings:read'
    SETTINGS_UPDATE = 'settings:update'

    # Housekeeping
    HOUSEKEEPING_READ = 'housekeeping:read'
    HOUSEKEEPING_UPDATE = 'housekeeping:update'


class Role(Enum):
    SUPER_ADMIN = 'super_admin'
    SUB_SUPER_ADMIN = 'sub_super_admin'
    ADMIN = 'admin'
    MANAGER = 'manager'
    ACCOUNTANT = 'accountant'
    RECEPTIONIST = 'receptionist'
    HOUSEKEEPING = 'housekeeping'


P = Permission

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.SUB_SUPER_ADMIN: frozenset({
        P.HOTEL_CREATE, P.HOTEL_READ, P.HOTEL_UPDATE,
        P.USER_CREATE, P.USER_READ, P.USER_UPDATE,
        P.REPORT_VIEW, P.REPORT_EXPORT,
    }),
    Role.ADMIN: frozenset({
        P.HOTEL_READ, P.HOTEL_UPDATE,
        P.USER_CREATE, P.USER_READ, P.USER_UPDATE, P.USER_DELETE,
        P.ROOM_CREATE, P.ROOM_READ, P.ROOM_UPDATE, P.ROOM_DELETE,
        P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE, P.BOOKING_DELETE,
        P.BOOKING_CONFIRM, P.BOOKING_CANCEL, P.BOOKING_CHECKIN, P.BOOKING_CHECKOUT,
        P.GUEST_CREATE, P.GUEST_READ, P.GUEST_UPDATE, P.GUEST_DELETE,
        P.PAYMENT_CREATE, P.PAYMENT_READ, P.PAYMENT_REFUND,
        P.REPORT_VIEW, P.REPORT_EXPORT,
        P.SETTINGS_READ, P.SETTINGS_UPDATE,
        P.HOUSEKEEPING_READ, P.HOUSEKEEPING_UPDATE,
    }),
    Role.MANAGER: frozenset({
        P.HOTEL_READ, P.USER_READ,
        P.ROOM_CREATE, P.ROOM_READ, P.ROOM_UPDATE,
        P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE,
        P.BOOKING_CONFIRM, P.BOOKING_CANCEL, P.BOOKING_CHECKIN, P.BOOKING_CHECKOUT,
        P.GUEST_CREATE, P.GUEST_READ, P.GUEST_UPDATE,
        P.PAYMENT_CREATE, P.PAYMENT_READ,
        P.REPORT_VIEW, P.SETTINGS_READ,
        P.HOUSEKEEPING_READ, P.HOUSEKEEPING_UPDATE,
    }),
    Role.RECEPTIONIST: frozenset({
        P.ROOM_READ,
        P.BOOKING_CREATE, P.BOOKING_READ, P.BOOKING_UPDATE,
        P.BOOKING_CONFIRM, P.BOOKING_CANCEL, P.BOOKING_CHECKIN, P.BOOKING_CHECKOUT,
        P.GUEST_CREATE, P.GUEST_READ, P.GUEST_UPDATE,
        P.PAYMENT_CREATE, P.PAYMENT_READ,
        P.HOUSEKEEPING_READ,
    }),
    Role.HOUSEKEEPING: frozenset({
        P.ROOM_READ, P.HOUSEKEEPING_READ, P.HOUSEKEEPING_UPDATE,
    }),
    Role.ACCOUNTANT: frozenset({
        P.BOOKING_READ, P.GUEST_READ,
        P.PAYMENT_CREATE, P.PAYMENT_READ, P.PAYMENT_REFUND,
        P.REPORT_VIEW, P.REPORT_EXPORT,
    }),
}

ROLE_HIERARCHY: dict[Role, int] = {
    Role.SUPER_ADMIN: 100,
    Role.SUB_SUPER_ADMIN: 90,
    Role.ADMIN: 80,
    Role.MANAGER: 60,
    Role.ACCOUNTANT: 40,
    Role.RECEPTIONIST: 40,
    Role.HOUSEKEEPING: 20,
}

# Roles whose members may act without a hotel and pick any hotel explicitly.
CROSS_TENANT_ROLES = frozenset({Role.SUPER_ADMIN})


def _value(permission: Permission | str) -> str:
    return permission.value if isinstance(permission, Permission) else permission


def permissions_for_role(role: Role) -> frozenset[str]:
    return frozenset(p.value for p in ROLE_PERMISSIONS.get(role, ()))


def effective_permissions(principal: 'Principal') -> frozenset[str]:
    """Role defaults united with the principal's custom permissions."""
    return permissions_for_role(principal.role) | frozenset(principal.custom_permissions)


def has_permission(principal: 'Principal', permission: Permission | str) -> bool:
    return _value(permission) in effective_permissions(principal)


def has_any_permission(principal: 'Principal', permissions: Iterable[Permission | str]) -> bool:
    granted = effective_permissions(principal)
    return any(_value(p) in granted for p in permissions)


def has_all_permissions(principal: 'Principal', permissions: Iterable[Permission | str]) -> bool:
    granted = effective_permissions(principal)
    return all(_value(p) in granted for p in permissions)


def require_permission(principal: 'Principal', permission: Permission | str) -> None:
    """Raise Forbidden unless the principal holds ``permission``."""
    if not has_permission(principal, permission):
        raise Forbidden(
            f"Missing permission {_value(permission)}",
            permission=_value(permission),
        )


def is_role_higher_or_equal(role: Role, other: Role) -> bool:
    return ROLE_HIERARCHY[role] >= ROLE_HIERARCHY[other]


def can_manage_role(principal: 'Principal', target_role: Role) -> bool:
    """A principal may administer only roles ranked strictly below its own."""
    return ROLE_HIERARCHY[principal.role] > ROLE_HIERARCHY[target_role]
