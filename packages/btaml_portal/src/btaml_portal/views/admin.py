"""
Admin CMS.

Every screen except the login page requires a signed-in staff user.
The four content sections share one set of views; routes bind a view to
its section with ``as_view(section=..., form_class=...)``.
"""

import logging
from typing import Any, ClassVar

from btaml_auth import IsStaffUser, SessionAuthenticationBackend
from btaml_db import DoesNotExistError
from btaml_db.queryset import QuerySet
from btaml_html.forms import BaseForm
from btaml_html.views import (
    DatabaseMixin,
    FormView,
    ListView,
    PermissionMixin,
    SingleObjectMixin,
    TemplateView,
    View,
)
from fastapi import HTTPException, Response, status
from fastapi.responses import RedirectResponse

from ..content import delete_article, save_article, success_message
from ..flash import flash
from ..forms import AdminLoginForm, ArticleForm
from ..models import DRAFT, PUBLISHED, STATUSES, VARIANTS, Article
from ..stats import collect_stats
from ..uploads import (
    IMAGES_BUCKET,
    ImageValidationError,
    StorageError,
    image_object_name,
)

logger = logging.getLogger(__name__)

ADMIN_LOGIN_URL = "/admin/login"
ADMIN_HOME_URL = "/admin/dashboard"


def _safe_admin_next(target: str | None) -> str:
    if target and target.startswith("/admin") and not target.startswith("//"):
        return target
    return ADMIN_HOME_URL


class StaffRequiredMixin(PermissionMixin):
    permission_classes: ClassVar[list] = [IsStaffUser]
    login_url = ADMIN_LOGIN_URL


class AdminSectionMixin:
    """Resolve the content variant an admin view works on."""

    section: str = ""

    @property
    def variant(self) -> type[Article]:
        try:
            return VARIANTS[self.section]
        except KeyError as e:
            raise HTTPException(status_code=404, detail="Unknown section.") from e

    def get_section_context(self) -> dict[str, Any]:
        return {
            "section": self.section,
            "variant_name": self.variant.verbose_name,
            "sections": VARIANTS,
        }


class AdminLoginView(DatabaseMixin, FormView):
    template_name = "admin/login.html"
    form_class = AdminLoginForm

    async def get(self, **kwargs: Any) -> Response:
        user = getattr(self.request.state, "user", None)
        if user and user.is_active and user.is_staff:
            return RedirectResponse(ADMIN_HOME_URL, status_code=status.HTTP_303_SEE_OTHER)
        return await super().get(**kwargs)

    def get_initial(self) -> dict[str, Any]:
        return {"next": self.request.query_params.get("next", "")}

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db
        settings = self.request.app.state.settings
        backend: SessionAuthenticationBackend = self.request.app.state.auth_backend
        result = await backend.login(
            self.request,
            self.db,
            username=form.cleaned_data["username"].lower(),
            password=form.cleaned_data["password"],
            staff_only=True,
            expire_seconds=settings.ADMIN_SESSION_EXPIRE_SECONDS,
        )
        if not result.success:
            logger.info("Admin login refused: %s", ", ".join(result.errors))
            form.add_error(None, result.errors[0] if result.errors else result.message)
            return await self.form_invalid(form)

        return RedirectResponse(
            _safe_admin_next(form.cleaned_data.get("next")),
            status_code=status.HTTP_303_SEE_OTHER,
        )


class AdminLogoutView(DatabaseMixin, View):
    async def post(self, **kwargs: Any) -> Response:  # noqa: ARG002
        assert self.db
        backend: SessionAuthenticationBackend = self.request.app.state.auth_backend
        await backend.logout(self.request, self.db)
        return RedirectResponse(ADMIN_LOGIN_URL, status_code=status.HTTP_303_SEE_OTHER)


class AdminDashboardView(StaffRequiredMixin, DatabaseMixin, TemplateView):
    template_name = "admin/dashboard.html"

    async def get(self, **kwargs: Any) -> Response:  # noqa: ARG002
        assert self.db
        stats = await collect_stats(self.db)
        context = self.get_context_data(stats=stats, sections=VARIANTS)
        return self.render_to_response(context)


class AdminArticleListView(AdminSectionMixin, StaffRequiredMixin, ListView[Article]):
    """Rows of one section in every status, with title and status filters."""

    template_name = "admin/article_list.html"
    model = Article
    paginate_by = 20
    ordering = ["-created_at", "-id"]

    def get_queryset(self) -> QuerySet[Article]:
        qs = self.variant.objects.all()
        query = self.request.query_params.get("q", "").strip()
        if query:
            qs = qs.filter(title__icontains=query)
        status_filter = self.request.query_params.get("status", "")
        if status_filter in STATUSES:
            qs = qs.filter(status=status_filter)
        return qs

    async def render_list(self, page: dict[str, Any], **kwargs: Any) -> Response:
        assert self.db
        counts = {
            PUBLISHED: await self.variant.objects.filter(status=PUBLISHED).count(self.db),
            DRAFT: await self.variant.objects.filter(status=DRAFT).count(self.db),
        }
        context = self.get_context_data(
            object_list=page["object_list"],
            page_obj=page,
            counts=counts,
            query=self.request.query_params.get("q", ""),
            status_filter=self.request.query_params.get("status", ""),
            **self.get_section_context(),
        )
        return self.render_to_response(context)


class AdminArticleFormView(
    AdminSectionMixin, StaffRequiredMixin, SingleObjectMixin[Article], FormView
):
    """
    Create a row of the section, or edit one when the route has a `pk`.

    The thumbnail is stored before the row is written. Nothing is saved
    while the form has errors.
    """

    template_name = "admin/article_form.html"
    model = Article
    form_class = ArticleForm
    object: Article | None = None

    def get_queryset(self) -> QuerySet[Article]:
        return self.variant.objects.all()

    async def prepare(self) -> None:
        if "pk" in self.kwargs:
            self.object = await self.get_object()

    def get_initial(self) -> dict[str, Any]:
        if self.object is None:
            return {}
        initial: dict[str, Any] = {}
        for name in self.get_form_class().declared_fields:
            value = getattr(self.object, name, None)
            if name == "tags" and isinstance(value, list):
                value = ", ".join(value)
            initial[name] = value
        initial["thumbnail"] = self.object.thumbnail
        return initial

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context.update(self.get_section_context())
        context["object"] = self.object
        context["is_edit"] = self.object is not None
        return context

    async def store_thumbnail(self, form: BaseForm) -> str | None:
        upload = form.cleaned_data.get("thumbnail")
        if upload is None:
            return self.object.thumbnail if self.object else None
        settings = self.request.app.state.settings
        storage = self.request.app.state.media_storage
        return await storage.save_upload(
            upload,
            bucket=IMAGES_BUCKET,
            name=image_object_name(self.variant.upload_prefix, upload.filename),
            max_bytes=settings.MAX_IMAGE_BYTES,
        )

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db
        assert isinstance(form, ArticleForm)
        try:
            thumbnail = await self.store_thumbnail(form)
        except (ImageValidationError, StorageError) as e:
            form.add_error("thumbnail", str(e))
            return await self.form_invalid(form)

        payload = form.payload()
        payload["thumbnail"] = thumbnail
        if self.object is None:
            user = getattr(self.request.state, "user", None)
            payload["author"] = getattr(user, "username", "") or "Admin"

        try:
            article = await save_article(
                self.db,
                self.variant,
                payload,
                pk=self.object.id if self.object else None,
            )
        except RuntimeError as e:
            logger.exception("Could not save %s", self.variant.__name__)
            detail = e.__cause__ or e
            form.add_error(None, f"Database error: {detail}")
            return await self.form_invalid(form)

        flash(self.request, success_message(article.status))
        return RedirectResponse(
            f"/admin/{self.section}", status_code=status.HTTP_303_SEE_OTHER
        )


class AdminArticleDeleteView(
    AdminSectionMixin, StaffRequiredMixin, DatabaseMixin, View
):
    async def post(self, **kwargs: Any) -> Response:  # noqa: ARG002
        assert self.db
        try:
            pk = int(self.kwargs["pk"])
            await delete_article(self.db, self.variant, pk)
        except (KeyError, ValueError, DoesNotExistError) as e:
            raise HTTPException(status_code=404, detail="Article not found.") from e
        except RuntimeError:
            logger.exception("Could not delete %s %s", self.variant.__name__, pk)
            flash(self.request, "Error deleting article. Please try again.", "error")
        else:
            flash(self.request, "Article deleted successfully!")
        return RedirectResponse(
            f"/admin/{self.section}", status_code=status.HTTP_303_SEE_OTHER
        )
