"""
Application factory for the BTAML Universe portal.

Run it with:
    btaml-portal

or with uvicorn directly:
    uvicorn btaml_portal.main:create_app --factory --reload
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime
from pathlib import Path

import uvicorn
from btaml_auth import (
    PermissionRedirectError,
    SessionAuthenticationBackend,
    SessionAuthenticationMiddleware,
)
from btaml_core.logging import scoped_correlation_id, setup_logging
from btaml_db import db as db_module
from btaml_db.models import Model
from btaml_html.template_manager import TemplateManager
from btaml_html.views import TemplateView
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from . import models as _models  # noqa: F401  (registers the tables)
from .content import generate_excerpt
from .flash import get_flashed_messages
from .forms import (
    BusinessArticleForm,
    RegionalArticleForm,
    ScholarshipArticleForm,
    SecurityArticleForm,
)
from .newsletter import Mailer, SMTPMailer
from .settings import PortalSettings
from .taxonomy import (
    BUSINESS_CATEGORIES,
    CONTINENTS,
    REGIONS,
    SECURITY_CATEGORIES,
    THREAT_LEVELS,
)
from .uploads import MediaStorage
from .views import (
    AdminArticleDeleteView,
    AdminArticleFormView,
    AdminArticleListView,
    AdminDashboardView,
    AdminLoginView,
    AdminLogoutView,
    AvatarUploadView,
    BusinessDetailView,
    BusinessListView,
    HomeView,
    LegalPageView,
    LoginView,
    LogoutView,
    NewsletterView,
    PasswordChangeView,
    ProfileView,
    RegionDetailView,
    RegionListView,
    ScholarshipDetailView,
    ScholarshipListView,
    SearchView,
    SecurityDetailView,
    SecurityListView,
    SignupView,
)

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
DEV_SECRET_KEY = "btaml-dev-secret"

ADMIN_FORMS = {
    "africa": RegionalArticleForm,
    "business": BusinessArticleForm,
    "scholarship": ScholarshipArticleForm,
    "security": SecurityArticleForm,
}


def _format_date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%B %d, %Y").replace(" 0", " ")


def build_template_manager(settings: PortalSettings) -> TemplateManager:
    return TemplateManager(
        extra_directories=[TEMPLATES_DIR],
        global_context={
            "site_name": settings.SITE_NAME,
            "nav_regions": REGIONS,
            "nav_business_categories": BUSINESS_CATEGORIES,
            "security_categories": SECURITY_CATEGORIES,
            "continents": CONTINENTS,
            "threat_levels": THREAT_LEVELS,
        },
        global_functions={"get_flashed_messages": get_flashed_messages},
        filters={
            "excerpt": generate_excerpt,
            "format_date": _format_date,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: PortalSettings = app.state.settings
    owns_engine = not db_module.is_initialized()
    if owns_engine:
        db_module.init_db(settings.DATABASE_URL, **settings.engine_options())
    await db_module.create_tables(Model.metadata)
    Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    logger.info("%s started (%s)", settings.SITE_NAME, settings.ENVIRONMENT)

    yield

    if owns_engine:
        await db_module.close_db()


def register_routes(app: FastAPI) -> None:
    """Register all application routes."""

    def get(path: str, view) -> None:
        app.add_api_route(path, view, methods=["GET"])

    def post(path: str, view) -> None:
        app.add_api_route(path, view, methods=["POST"])

    # Public pages
    get("/", HomeView.as_view(method="get"))
    get("/africa/{region}", RegionListView.as_view(method="get"))
    get("/africa/{region}/{pk}", RegionDetailView.as_view(method="get"))
    get("/business/{category}", BusinessListView.as_view(method="get"))
    get("/business/{category}/{pk}", BusinessDetailView.as_view(method="get"))
    get("/scholarship", ScholarshipListView.as_view(method="get"))
    get("/scholarship/{pk}", ScholarshipDetailView.as_view(method="get"))
    get("/security", SecurityListView.as_view(method="get"))
    get("/security/{pk}", SecurityDetailView.as_view(method="get"))
    get("/search", SearchView.as_view(method="get"))
    get("/legal/{page}", LegalPageView.as_view(method="get"))
    for path, template in (
        ("/about", "portal/about.html"),
        ("/contact", "portal/contact.html"),
        ("/services", "portal/services.html"),
        ("/newsletter/thank-you", "portal/thank_you.html"),
    ):
        get(path, TemplateView.as_view(method="get", template_name=template))

    # Reader accounts
    for path, view in (
        ("/signup", SignupView),
        ("/login", LoginView),
        ("/profile", ProfileView),
    ):
        get(path, view.as_view(method="get"))
        post(path, view.as_view(method="post"))
    post("/logout", LogoutView.as_view(method="post"))
    post("/profile/avatar", AvatarUploadView.as_view(method="post"))
    post("/profile/password", PasswordChangeView.as_view(method="post"))

    # Admin
    get("/admin/login", AdminLoginView.as_view(method="get"))
    post("/admin/login", AdminLoginView.as_view(method="post"))
    post("/admin/logout", AdminLogoutView.as_view(method="post"))
    get("/admin", AdminDashboardView.as_view(method="get"))
    get("/admin/dashboard", AdminDashboardView.as_view(method="get"))
    for section, form_class in ADMIN_FORMS.items():
        get(
            f"/admin/{section}",
            AdminArticleListView.as_view(method="get", section=section),
        )
        for path in (f"/admin/{section}/create", f"/admin/{section}/edit/{{pk}}"):
            for method in ("get", "post"):
                app.add_api_route(
                    path,
                    AdminArticleFormView.as_view(
                        method=method, section=section, form_class=form_class
                    ),
                    methods=[method.upper()],
                )
        post(
            f"/admin/{section}/delete/{{pk}}",
            AdminArticleDeleteView.as_view(method="post", section=section),
        )

    # API
    post("/api/newsletter", NewsletterView.as_view(method="post"))


def create_app(
    settings: PortalSettings | None = None,
    *,
    mailer: Mailer | None = None,
) -> FastAPI:
    """
    Build the portal application.

    The database engine is created in the lifespan unless one has already
    been initialised with `btaml_db.init_db`.
    """
    settings = settings or PortalSettings()

    app = FastAPI(
        title=settings.SITE_NAME,
        description="Regional news, business insight, scholarships and security updates",
        version="1.0.0",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )
    auth_backend = SessionAuthenticationBackend(
        cookie_name=settings.SESSION_COOKIE_NAME,
        expire_seconds=settings.SESSION_EXPIRE_SECONDS,
    )

    app.state.settings = settings
    app.state.template_manager = build_template_manager(settings)
    app.state.media_storage = MediaStorage(settings.MEDIA_ROOT, settings.MEDIA_URL)
    app.state.auth_backend = auth_backend
    app.state.mailer = mailer or SMTPMailer.from_settings(settings)

    @app.exception_handler(PermissionRedirectError)
    async def handle_permission_redirect(
        _request: Request, exc: PermissionRedirectError
    ) -> RedirectResponse:
        return RedirectResponse(exc.url, status_code=302)

    app.add_middleware(
        SessionAuthenticationMiddleware,  # ty:ignore[invalid-argument-type]
        backend=auth_backend,
    )
    app.add_middleware(
        SessionMiddleware,  # ty:ignore[invalid-argument-type]
        secret_key=settings.SECRET_KEY or DEV_SECRET_KEY,
        https_only=not settings.is_development(),
        same_site="lax",
        max_age=settings.SESSION_EXPIRE_SECONDS,
        session_cookie=settings.SESSION_COOKIE_NAME,
    )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        with scoped_correlation_id(request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.mount(
        settings.MEDIA_URL,
        StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False),
        name="media",
    )
    register_routes(app)
    return app


def run() -> None:
    settings = PortalSettings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    uvicorn.run(
        "btaml_portal.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
