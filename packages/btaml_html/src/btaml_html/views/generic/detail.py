from typing import Any, Generic, TypeVar

from btaml_db.models import Model
from fastapi import Response

from btaml_html.views.mixins import PermissionMixin, SingleObjectMixin

from .base import TemplateView

T = TypeVar("T", bound=Model)


class DetailView(SingleObjectMixin[T], PermissionMixin, TemplateView, Generic[T]):
    """
    Render a "detail" view of an object looked up by the `pk` path parameter.

    The object is exposed to the template as `object` and under
    `context_object_name` (default: the lowercased model name).

    Example:
        >>> class ScholarshipDetail(DetailView[ScholarshipArticle]):
        ...     model = ScholarshipArticle
        ...     template_name = "portal/detail.html"
        ...
        >>> app.add_api_route("/scholarship/{pk}", ScholarshipDetail.as_view())
    """

    object: T | None = None

    async def get(self, *args: Any, **kwargs: Any) -> Response:
        self.object = await self.get_object()
        await self.check_object_permissions(
            self.request, self.object, getattr(self.request.state, "user", None)
        )
        return await super().get(*args, **kwargs)

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["object"] = self.object
        name = self.context_object_name or self.model.__name__.lower()
        context[name] = self.object
        return context
