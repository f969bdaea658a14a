"""One-time messages carried across a redirect in the signed session."""

from typing import Literal

from fastapi import Request

_SESSION_KEY = "_messages"

Level = Literal["success", "error", "info"]


def flash(request: Request, message: str, level: Level = "success") -> None:
    if "session" not in request.scope:
        return
    messages = list(request.session.get(_SESSION_KEY, []))
    messages.append({"level": level, "message": message})
    request.session[_SESSION_KEY] = messages


def get_flashed_messages(request: Request) -> list[dict[str, str]]:
    """Return pending messages and forget them."""
    if "session" not in request.scope:
        return []
    return request.session.pop(_SESSION_KEY, [])
