import inspect
from typing import Any, ClassVar

from btaml_auth.dependencies import permission_dependency
from btaml_auth.models import User
from btaml_auth.permissions import BasePermission
from btaml_auth.schemas import AnonymousUser
from fastapi import HTTPException, Request, status

from ..base import add_dependency


class PermissionMixin:
    """
    Guard a view with permission classes.

    Example:
        >>> class DashboardView(PermissionMixin, TemplateView):
        ...     permission_classes = [IsStaffUser]
        ...     login_url = "/admin/login"
    """

    permission_classes: ClassVar[list[type[BasePermission]]] = []
    view_attributes: ClassVar[frozenset[str]] = frozenset({"_permissions"})

    login_url: str | None = None  # URL to redirect to if user is unauthenticated
    redirect_field_name: str = "next"  # Query parameter name for the return URL
    raise_exception: bool = False  # If True, always 403 (don't redirect)

    @classmethod
    def resolve_dependencies(
        cls,
        params: list[inspect.Parameter],
        **kwargs: Any,
    ) -> None:
        perms_list = kwargs.get("permission_classes", cls.permission_classes)
        if perms_list:
            dep = permission_dependency(
                [perm() for perm in perms_list],
                login_url=kwargs.get("login_url", cls.login_url),
                redirect_field_name=kwargs.get(
                    "redirect_field_name", cls.redirect_field_name
                ),
                raise_exception=kwargs.get("raise_exception", cls.raise_exception),
            )
            add_dependency(params, "_permissions", dep)

        super().resolve_dependencies(params, **kwargs)  # type: ignore[misc]

    def get_permissions(self) -> list[BasePermission]:
        return [perm() for perm in self.permission_classes]

    async def check_object_permissions(
        self,
        request: Request,
        obj: Any,
        user: User | AnonymousUser,
    ) -> None:
        """Check object-level permissions manually."""
        for permission in self.get_permissions():
            if not await permission.has_object_permission(request, obj, user):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="You do not have permission to perform this action",
                )
