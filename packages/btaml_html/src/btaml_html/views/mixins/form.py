import inspect
from typing import Any

from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse

from btaml_html.forms import BaseForm

from ..base import add_dependency


class FormMixin:
    """
    Form handling mixin for class-based views.

    The submitted form is bound by a FastAPI dependency built from
    `form_class.as_dependency()` and handed to the handler as `form`.
    Rendering is left to the template mixins the view is combined with.
    """

    form_class: type[BaseForm] | None = None
    success_url: str | None = None
    request: Request

    @classmethod
    def resolve_dependencies(
        cls, params: list[inspect.Parameter], **kwargs: Any
    ) -> None:
        form_class = kwargs.get("form_class", cls.form_class)
        if form_class is not None:
            add_dependency(params, "form", form_class.as_dependency())
        super().resolve_dependencies(params, **kwargs)  # type: ignore[misc]

    def get_form_class(self) -> type[BaseForm]:
        if self.form_class is None:
            msg = f"{self.__class__.__name__} is missing the required form_class."
            raise RuntimeError(msg)
        return self.form_class

    def get_initial(self) -> dict[str, Any]:
        return {}

    def get_form_kwargs(self) -> dict[str, Any]:
        return {
            "initial": self.get_initial(),
            "request": self.request,
        }

    def get_form(self, **kwargs: Any) -> BaseForm:
        form_class = self.get_form_class()
        form_kwargs = self.get_form_kwargs()
        form_kwargs.update(
            {key: value for key, value in kwargs.items() if value is not None}
        )
        return form_class(**form_kwargs)

    def get_success_url(self) -> str:
        if not self.success_url:
            msg = (
                f"{self.__class__.__name__} requires success_url "
                "or a custom form_valid() implementation."
            )
            raise RuntimeError(msg)
        return self.success_url

    async def form_valid(self, form: BaseForm) -> Response:  # noqa: ARG002
        return RedirectResponse(
            url=self.get_success_url(),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    def render_form(
        self, form: BaseForm, status_code: int = 200, **kwargs: Any
    ) -> Response:
        # get_context_data and render_to_response come from the template mixins
        view: Any = self
        context = view.get_context_data(form=form, **kwargs)
        return view.render_to_response(context, status_code=status_code)

    async def form_invalid(self, form: BaseForm) -> Response:
        return self.render_form(form, status_code=400)


class ProcessFormView(FormMixin):
    """
    GET/POST handlers for form processing.

    Combine with TemplateView to render templates and with PermissionMixin
    or DatabaseMixin for access control and persistence.
    """

    async def prepare(self) -> None:
        """Hook run before either handler, e.g. to load the edited object."""

    async def get(self, **kwargs: Any) -> Response:
        await self.prepare()
        kwargs.pop("form", None)
        return self.render_form(self.get_form(), **kwargs)

    async def post(self, **kwargs: Any) -> Response:
        await self.prepare()
        form = kwargs.get("form")
        if form is None:
            form_data = await self.request.form()
            form = self.get_form(data=dict(form_data))
        else:
            # The dependency binds data only; add the view's initial values
            form.initial = self.get_initial()
        if form.is_valid():
            return await self.form_valid(form)
        return await self.form_invalid(form)
