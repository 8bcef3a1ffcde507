"""Authenticated actor handed to the booking core by the request layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

from . import permissions as perms
from .permissions import CROSS_TENANT_ROLES, Permission, Role


@dataclass(frozen=True)
class Principal:
    """
    The user making a request.

    ``hotel_id`` is None only for cross-tenant administrators.
    ``custom_permissions`` are granted in addition to the role defaults.
    """

    user_id: str
    role: Role
    hotel_id: UUID | None = None
    custom_permissions: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if isinstance(self.role, str):
            object.__setattr__(self, 'role', Role(self.role))
        if not isinstance(self.custom_permissions, frozenset):
            object.__setattr__(self, 'custom_permissions', frozenset(self.custom_permissions))

    @classmethod
    def build(
        cls,
        user_id,
        role: Role | str,
        hotel_id: UUID | str | None = None,
        custom_permissions: Iterable[str] = (),
    ) -> 'Principal':
        """Build from loosely typed token claims."""
        return cls(
            user_id=str(user_id),
            role=Role(role),
            hotel_id=UUID(str(hotel_id)) if hotel_id else None,
            custom_permissions=frozenset(custom_permissions),
        )

    @property
    def is_cross_tenant(self) -> bool:
        return self.hotel_id is None and self.role in CROSS_TENANT_ROLES

    @property
    def effective_permissions(self) -> frozenset[str]:
        return perms.effective_permissions(self)

    def has_permission(self, permission: Permission | str) -> bool:
        return perms.has_permission(self, permission)

    def require(self, permission: Permission | str) -> None:
        perms.require_permission(self, permission)

    def can_manage(self, target_role: Role) -> bool:
        return perms.can_manage_role(self, target_role)
