from .backend import AuthenticationBackend, SessionAuthenticationBackend
from .dependencies import (
    PermissionRedirectError,
    get_current_user,
    permission_dependency,
)
from .hasher import hash_password, verify_password
from .middleware import SessionAuthenticationMiddleware
from .models import User, UserSession
from .permissions import BasePermission, IsAuthenticated, IsStaffUser
from .schemas import AnonymousUser, AuthenticationResult

__all__ = [
    "AnonymousUser",
    "AuthenticationBackend",
    "AuthenticationResult",
    "BasePermission",
    "IsAuthenticated",
    "IsStaffUser",
    "PermissionRedirectError",
    "SessionAuthenticationBackend",
    "SessionAuthenticationMiddleware",
    "User",
    "UserSession",
    "get_current_user",
    "hash_password",
    "permission_dependency",
    "verify_password",
]
