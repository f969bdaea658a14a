from abc import ABC, abstractmethod
from typing import Any

from fastapi import Request

from .models import User
from .schemas import AnonymousUser

AnyUser = User | AnonymousUser


class BasePermission(ABC):
    """A rule deciding whether the current user may use a view."""

    @abstractmethod
    async def has_permission(self, request: Request, user: AnyUser) -> bool: ...

    async def has_object_permission(
        self,
        request: Request,  # noqa: ARG002
        obj: Any,  # noqa: ARG002
        user: AnyUser,  # noqa: ARG002
    ) -> bool:
        """Per-object check for detail views; allows everything by default."""
        return True


class IsAuthenticated(BasePermission):
    """Signed-in users whose account is active."""

    async def has_permission(
        self,
        request: Request,  # noqa: ARG002
        user: AnyUser,
    ) -> bool:
        return bool(user.is_authenticated and user.is_active)


class IsStaffUser(IsAuthenticated):
    """Active staff accounts; guards the admin CMS."""

    async def has_permission(self, request: Request, user: AnyUser) -> bool:
        return await super().has_permission(request, user) and user.is_staff
