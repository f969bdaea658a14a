import inspect
from typing import Any, Callable, ClassVar, Coroutine, cast

from btaml_auth.dependencies import PermissionRedirectError
from fastapi import Depends, Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

_HIDDEN_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def add_dependency(
    params: list[inspect.Parameter], name: str, dependency: Callable[..., Any]
) -> None:
    """Put a ``Depends(dependency)`` parameter called `name` in front of `params`."""
    if any(p.name == name for p in params):
        return
    params.insert(
        0,
        inspect.Parameter(
            name,
            kind=inspect.Parameter.POSITIONAL_OR_KEYWORD,
            annotation=Any,
            default=Depends(dependency),
        ),
    )


class View:
    """
    Class-based view turned into a FastAPI endpoint by ``as_view()``.

    The endpoint exposes the handler's own parameters to FastAPI, plus
    whatever the mixins add through ``resolve_dependencies``. Values named
    in ``view_attributes`` are stored on the instance instead of being
    passed to the handler, unless the handler asks for them.

    Example:
        >>> class HelloView(View):
        ...     async def get(self, request: Request, name: str = "World"):
        ...         return PlainTextResponse(f"Hello, {name}")
        >>>
        >>> app.add_api_route("/hello", HelloView.as_view())
    """

    http_method_names: ClassVar[list[str]] = [
        "get",
        "post",
        "put",
        "patch",
        "delete",
        "head",
        "options",
    ]
    view_attributes: ClassVar[frozenset[str]] = frozenset()

    request: Request
    kwargs: dict[str, Any]

    def __init__(self, **attrs: Any) -> None:
        for key, value in attrs.items():
            setattr(self, key, value)

    @classmethod
    def _handler_for(cls, method: str | None) -> tuple[str | None, Callable | None]:
        if method is None:
            name = next((n for n in cls.http_method_names if hasattr(cls, n)), None)
            return None, getattr(cls, name) if name else None

        name = method.lower()
        if name not in cls.http_method_names:
            msg = (
                f"{cls.__name__}() received an invalid method {method!r}. "
                "Use one of: " + ", ".join(cls.http_method_names)
            )
            raise ValueError(msg)
        handler = getattr(cls, name, None)
        if handler is None:
            msg = f"{cls.__name__} has no '{name}' handler."
            raise ValueError(msg)
        return name, handler

    @classmethod
    def as_view(
        cls, method: str | None = None, **initkwargs: Any
    ) -> Callable[..., Coroutine[Any, Any, Response]]:
        """
        Build the endpoint callable.

        Args:
            method: Handler whose signature FastAPI sees ("get", "post"...).
                Defaults to the first handler the class defines.
            **initkwargs: Class attributes to override on each instance.
        """
        unknown = [key for key in initkwargs if not hasattr(cls, key)]
        if unknown:
            msg = (
                f"{cls.__name__}() received an invalid keyword {unknown[0]!r}. "
                "as_view() only accepts arguments that are already attributes "
                "of the class."
            )
            raise TypeError(msg)

        method_name, handler = cls._handler_for(method)
        params: list[inspect.Parameter] = []
        if handler is not None:
            params = [
                p
                for p in inspect.signature(handler).parameters.values()
                if p.name != "self" and p.kind not in _HIDDEN_KINDS
            ]
        declared = {p.name for p in params}
        stored = cls.stored_attributes()

        async def view(request: Request, **kwargs: Any) -> Response:
            self = cls(**initkwargs)
            self.request = request
            for name in stored & kwargs.keys():
                setattr(self, name, kwargs[name])
                if name not in declared:
                    del kwargs[name]
            self.kwargs = {
                **request.path_params,
                **{k: v for k, v in kwargs.items() if k not in stored},
            }
            if "request" in declared:
                kwargs["request"] = request
            return await self.dispatch(**kwargs)

        view.__doc__ = cls.__doc__
        view.__module__ = cls.__module__
        view.__name__ = f"{cls.__name__}_{method_name}" if method_name else cls.__name__

        if handler is not None:
            if "request" not in declared:
                params.insert(
                    0,
                    inspect.Parameter(
                        "request",
                        kind=inspect.Parameter.POSITIONAL_OR_KEYWORD,
                        annotation=Request,
                    ),
                )
            cls.resolve_dependencies(params, **initkwargs)
            # Python requires parameters without defaults first
            params.sort(
                key=lambda p: (p.kind.value, p.default is not inspect.Parameter.empty)
            )
            cast("Any", view).__signature__ = inspect.Signature(params)

        return view

    @classmethod
    def stored_attributes(cls) -> frozenset[str]:
        """``view_attributes`` of the whole class hierarchy."""
        return frozenset().union(
            *(vars(klass).get("view_attributes", ()) for klass in cls.__mro__)
        )

    @classmethod
    def resolve_dependencies(
        cls, params: list[inspect.Parameter], **kwargs: Any
    ) -> None:
        """Mixins extend `params`; `kwargs` are the ``as_view()`` overrides."""

    async def dispatch(self, **kwargs: Any) -> Response:
        method = self.request.method.lower()
        handler = self.http_method_not_allowed
        if method in self.http_method_names:
            handler = getattr(self, method, self.http_method_not_allowed)
        try:
            response = handler(**kwargs)
            if inspect.isawaitable(response):
                response = await response
        except PermissionRedirectError as e:
            return RedirectResponse(e.url, status_code=302)
        return response

    def http_method_not_allowed(self, **_kwargs: Any) -> Response:
        return PlainTextResponse("Method Not Allowed", status_code=405)
