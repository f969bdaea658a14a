from typing import Any, Generic, TypeVar

from pydantic import BaseModel

ExtraContextT = TypeVar("ExtraContextT", bound=BaseModel | dict[str, Any])


class ContextMixin(Generic[ExtraContextT]):
    """
    Provide context data for template rendering.

    `extra_context` (a dict or a Pydantic model) is merged over the keyword
    arguments. The current user is exposed as `user` when an authentication
    middleware has set `request.state.user`.

    Example:
        >>> class AboutView(ContextMixin[dict]):
        ...     extra_context = {"page_title": "About Us"}
    """

    extra_context: ExtraContextT | None = None

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = dict(kwargs)
        context.setdefault("view", self)

        request = getattr(self, "request", None)
        if request is not None:
            context.setdefault("user", getattr(request.state, "user", None))

        if self.extra_context is not None:
            if isinstance(self.extra_context, BaseModel):
                context.update(self.extra_context.model_dump())
            elif isinstance(self.extra_context, dict):
                context.update(self.extra_context)
            else:
                raise TypeError(
                    f"'extra_context' must be a dict or Pydantic BaseModel, "
                    f"received {type(self.extra_context).__name__!r}."
                )

        return context
