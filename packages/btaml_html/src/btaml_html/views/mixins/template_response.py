from typing import Any

from fastapi import Request, Response

from btaml_html.template_manager import TemplateManager


class TemplateResponseMixin:
    """
    Render `template_name` into an HTML response.

    Templates come from ``as_view(template_engine=...)`` when given,
    otherwise from ``request.app.state.template_manager``.
    """

    template_name: str | None = None
    template_engine: TemplateManager | None = None
    content_type: str | None = None
    request: Request

    def get_template_names(self) -> list[str]:
        if self.template_name is None:
            msg = (
                f"{type(self).__name__} needs a template_name or its own "
                "get_template_names()."
            )
            raise ValueError(msg)
        return [self.template_name]

    def get_template_engine(self) -> TemplateManager:
        engine = self.template_engine or getattr(
            self.request.app.state, "template_manager", None
        )
        if engine is None:
            msg = (
                "No TemplateManager found: set app.state.template_manager "
                "or pass as_view(template_engine=...)."
            )
            raise RuntimeError(msg)
        return engine

    def render_to_response(
        self, context: dict[str, Any], **response_kwargs: Any
    ) -> Response:
        context.setdefault("request", self.request)
        return self.get_template_engine().templates.TemplateResponse(
            self.request,
            name=self.get_template_names()[0],
            context=context,
            media_type=self.content_type,
            **response_kwargs,
        )
