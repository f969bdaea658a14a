from typing import Any

from fastapi import Response

from btaml_html.views.base import View
from btaml_html.views.mixins import ContextMixin, TemplateResponseMixin


class TemplateView(TemplateResponseMixin, ContextMixin, View):
    """
    Render a template.

    Example:
        >>> class AboutView(TemplateView):
        ...     template_name = "portal/about.html"
        ...
        >>> app.add_api_route("/about", AboutView.as_view())
    """

    async def get(self, *args: Any, **kwargs: Any) -> Response:  # noqa: ARG002
        context = self.get_context_data(**kwargs)
        return self.render_to_response(context)
