"""
Reader accounts: sign-up, login, logout and the profile pages.
"""

import logging
from typing import Any, ClassVar

from btaml_auth import IsAuthenticated, SessionAuthenticationBackend, User
from btaml_html.forms import BaseForm, ValidationError
from btaml_html.views import DatabaseMixin, FormView, View
from fastapi import Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from ..flash import flash
from ..forms import (
    AvatarForm,
    LoginForm,
    PasswordChangeForm,
    ProfileForm,
    SignupForm,
)
from ..models import Profile
from ..profiles import (
    change_password,
    get_or_create_profile,
    update_profile,
    upload_avatar,
)
from ..uploads import ImageValidationError, StorageError

logger = logging.getLogger(__name__)

LOGIN_URL = "/login"
PROFILE_URL = "/profile"


def _safe_next(target: str | None, default: str = PROFILE_URL) -> str:
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return default


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


class SignupView(DatabaseMixin, FormView):
    template_name = "account/signup.html"
    form_class = SignupForm

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db
        email = form.cleaned_data["email"].lower()
        if await User.objects.filter(email__iexact=email).exists(self.db):
            form.add_error("email", "An account with this email already exists")
            return await self.form_invalid(form)

        user = User(username=email, email=email, is_active=True)
        user.set_password(form.cleaned_data["password"])
        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Could not create an account for %s", email)
            form.add_error(None, f"Database error: {e}")
            return await self.form_invalid(form)

        profile = await get_or_create_profile(self.db, user)
        await update_profile(
            self.db, profile, full_name=form.cleaned_data["full_name"]
        )
        logger.info("New account %s", user.id)

        backend: SessionAuthenticationBackend = self.request.app.state.auth_backend
        await backend.login(
            self.request,
            self.db,
            email=email,
            password=form.cleaned_data["password"],
        )
        flash(self.request, "Welcome to BTAML Universe!")
        return _redirect(PROFILE_URL)


class LoginView(DatabaseMixin, FormView):
    template_name = "account/login.html"
    form_class = LoginForm

    def get_initial(self) -> dict[str, Any]:
        return {"next": self.request.query_params.get("next", "")}

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db
        backend: SessionAuthenticationBackend = self.request.app.state.auth_backend
        result = await backend.login(
            self.request,
            self.db,
            email=form.cleaned_data["email"],
            password=form.cleaned_data["password"],
        )
        if not result.success:
            form.add_error(None, "Invalid email or password")
            return await self.form_invalid(form)
        return _redirect(_safe_next(form.cleaned_data.get("next")))


class LogoutView(DatabaseMixin, View):
    async def post(self, **kwargs: Any) -> Response:  # noqa: ARG002
        assert self.db
        backend: SessionAuthenticationBackend = self.request.app.state.auth_backend
        await backend.logout(self.request, self.db)
        return _redirect("/")


class AccountMixin(DatabaseMixin):
    """Signed-in reader with a loaded profile."""

    permission_classes: ClassVar[list] = [IsAuthenticated]
    login_url = LOGIN_URL
    profile: Profile | None = None

    async def prepare(self) -> None:
        assert self.db
        self.profile = await get_or_create_profile(self.db, self.request.state.user)


class ProfileView(AccountMixin, FormView):
    template_name = "account/profile.html"
    form_class = ProfileForm

    def get_initial(self) -> dict[str, Any]:
        if self.profile is None:
            return {}
        return {
            "full_name": self.profile.full_name,
            "phone": self.profile.phone,
            "location": self.profile.location,
            "bio": self.profile.bio,
        }

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["profile"] = self.profile
        context["avatar_form"] = AvatarForm()
        context["password_form"] = PasswordChangeForm()
        return context

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db and self.profile
        await update_profile(
            self.db,
            self.profile,
            full_name=form.cleaned_data["full_name"],
            phone=form.cleaned_data["phone"],
            location=form.cleaned_data["location"],
            bio=form.cleaned_data["bio"],
        )
        flash(self.request, "Profile updated successfully!")
        return _redirect(PROFILE_URL)


class ProfileActionView(AccountMixin, FormView):
    """A secondary profile form; both outcomes go back to the profile page."""

    async def form_invalid(self, form: BaseForm) -> Response:
        for messages in form.errors.values():
            for message in messages:
                flash(self.request, message, "error")
        return _redirect(PROFILE_URL)


class AvatarUploadView(ProfileActionView):
    form_class = AvatarForm

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db and self.profile
        settings = self.request.app.state.settings
        try:
            await upload_avatar(
                self.db,
                self.profile,
                form.cleaned_data["avatar"],
                storage=self.request.app.state.media_storage,
                max_bytes=settings.MAX_AVATAR_BYTES,
            )
        except (ImageValidationError, StorageError) as e:
            flash(self.request, str(e), "error")
        else:
            flash(self.request, "Profile picture updated successfully!")
        return _redirect(PROFILE_URL)


class PasswordChangeView(ProfileActionView):
    form_class = PasswordChangeForm

    async def form_valid(self, form: BaseForm) -> Response:
        assert self.db
        try:
            await change_password(
                self.db,
                self.request.state.user,
                form.cleaned_data["new_password"],
                form.cleaned_data["confirm_password"],
            )
        except ValidationError as e:
            flash(self.request, str(e), "error")
        else:
            flash(self.request, "Password updated successfully!")
        return _redirect(PROFILE_URL)
