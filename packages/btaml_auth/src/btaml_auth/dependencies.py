"""
FastAPI dependencies that read the signed-in user and enforce permissions.
"""

from urllib.parse import quote

from fastapi import Depends, HTTPException, Request, status

from .models import User
from .permissions import BasePermission
from .schemas import AnonymousUser


class PermissionRedirectError(Exception):
    """Raised to send the visitor to `url` (the login page) instead of a 403."""

    def __init__(self, url: str):
        super().__init__(url)
        self.url = url


def get_current_user(request: Request) -> User | AnonymousUser:
    """The user set by the session middleware, or an anonymous one."""
    return getattr(request.state, "user", None) or AnonymousUser()


def login_redirect_url(
    request: Request, login_url: str, field_name: str = "next"
) -> str:
    """`login_url` with the current path and query attached as `field_name`."""
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    sep = "&" if "?" in login_url else "?"
    return f"{login_url}{sep}{field_name}={quote(target)}"


def permission_dependency(
    permissions: list[BasePermission],
    *,
    login_url: str | None = None,
    redirect_field_name: str = "next",
    raise_exception: bool = False,
):
    """
    Build a dependency that checks every permission and returns the user.

    Anonymous visitors are redirected to `login_url` by raising
    `PermissionRedirectError`; signed-in users who fail a check, and every
    failure when `raise_exception` is set, get 403.
    """

    async def check_permissions(
        request: Request, user: User | AnonymousUser = Depends(get_current_user)
    ) -> User | AnonymousUser:
        for permission in permissions:
            if await permission.has_permission(request, user):
                continue
            if login_url and not raise_exception and not user.is_active:
                raise PermissionRedirectError(
                    login_redirect_url(request, login_url, redirect_field_name)
                )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action",
            )
        return user

    return check_permissions
