from typing import Any, Generic, TypeVar

from btaml_db.models import Model
from fastapi import Response

from btaml_html.views.mixins import MultipleObjectMixin, PermissionMixin

from .base import TemplateView

T = TypeVar("T", bound=Model)


class ListView(MultipleObjectMixin[T], PermissionMixin, TemplateView, Generic[T]):
    """
    Render a page of objects.

    The `page` query parameter (1-based) selects the page when
    `paginate_by` is set. The template receives `object_list` and
    `page_obj` metadata.
    """

    def get_page_number(self) -> int:
        try:
            return max(int(self.request.query_params.get("page", 1)), 1)
        except ValueError:
            return 1

    async def get(self, *args: Any, **kwargs: Any) -> Response:
        offset = (self.get_page_number() - 1) * (self.paginate_by or 0)
        page = await self.get_objects(offset=offset)
        return await self.render_list(page, **kwargs)

    async def render_list(self, page: dict[str, Any], **kwargs: Any) -> Response:
        context = self.get_context_data(
            object_list=page["object_list"],
            page_obj=page,
            **kwargs,
        )
        return self.render_to_response(context)
