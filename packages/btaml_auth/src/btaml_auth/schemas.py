from typing import Any

from btaml_db import Model
from pydantic import BaseModel, ConfigDict, Field


class AnonymousUser(BaseModel):
    """Stands in for ``request.state.user`` when nobody is signed in."""

    id: None = None
    username: str = ""
    email: None = None
    is_active: bool = False
    is_staff: bool = False
    is_superuser: bool = False

    @property
    def is_authenticated(self) -> bool:
        return False

    @property
    def display_name(self) -> str:
        return "Anonymous"

    def __str__(self) -> str:
        return "AnonymousUser"

    def __bool__(self) -> bool:
        return False


class AuthenticationResult(BaseModel):
    """
    Outcome of a login or session lookup.

    ``user`` is an ``AnonymousUser`` whenever ``success`` is false;
    ``errors`` holds the messages shown to the visitor and ``extra`` the
    backend data, such as the new ``session_key``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    user: Model | AnonymousUser
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)
