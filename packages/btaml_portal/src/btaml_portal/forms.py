from typing import Any, ClassVar

from btaml_html.forms import (
    BaseForm,
    CharField,
    ChoiceField,
    DateField,
    EmailField,
    FileField,
    MultipleChoiceField,
    TextAreaField,
    URLField,
)

from .models import DRAFT, PUBLISHED
from .taxonomy import (
    AFRICAN_COUNTRIES,
    BUSINESS_CATEGORIES,
    BUSINESS_REGIONS,
    CONTINENTS,
    FUNDING_TYPES,
    REGIONS,
    SCHOLARSHIP_TYPES,
    SECURITY_CATEGORIES,
    THREAT_LEVELS,
    as_choices,
)
from .settings import PortalSettings
from .uploads import ImageValidationError, validate_image

MIN_PASSWORD_LENGTH = 6


def _required(message: str) -> dict[str, str]:
    return {"required": message}


def _content_field() -> TextAreaField:
    return TextAreaField(
        rows=14,
        help_text="HTML is allowed.",
        error_messages=_required("Content is required"),
    )


def _excerpt_field() -> TextAreaField:
    return TextAreaField(
        required=False,
        rows=3,
        help_text="Leave blank to use the first 150 characters of the content.",
    )


def _status_field() -> ChoiceField:
    return ChoiceField(
        required=False,
        initial=DRAFT,
        choices=[(DRAFT, "Draft"), (PUBLISHED, "Published")],
    )


def _thumbnail_field() -> FileField:
    return FileField(required=False, accept="image/*", help_text="PNG, JPG or GIF.")


def _check_image(form: BaseForm, name: str, setting: str) -> None:
    """Validate the upload in `name` against the size limit `setting`."""
    upload = form.cleaned_data.get(name)
    if upload is None:
        return
    if form.request is not None:
        max_bytes = getattr(form.request.app.state.settings, setting)
    else:
        max_bytes = PortalSettings.model_fields[setting].default
    try:
        validate_image(upload, max_bytes)
    except ImageValidationError as e:
        del form.cleaned_data[name]
        form.add_error(name, str(e))


class ArticleForm(BaseForm):
    """
    Shared behaviour of the admin content forms.

    A new article needs a thumbnail upload. When editing, `initial`
    carries the stored thumbnail URL and the upload may be left empty.
    """

    # Cleaned fields that are not columns of the variant
    non_column_fields: ClassVar[frozenset[str]] = frozenset({"thumbnail"})

    def clean(self) -> dict[str, Any] | None:
        _check_image(self, "thumbnail", "MAX_IMAGE_BYTES")
        if (
            self.cleaned_data.get("thumbnail") is None
            and "thumbnail" not in self.errors
            and not self.initial.get("thumbnail")
        ):
            self.add_error("thumbnail", "Thumbnail is required")
        if not self.cleaned_data.get("status"):
            return {"status": DRAFT}
        return None

    def payload(self) -> dict[str, Any]:
        """Column values for the variant; blank optional values become None."""
        return {
            name: None if value == "" else value
            for name, value in self.cleaned_data.items()
            if name not in self.non_column_fields
        }


class RegionalArticleForm(ArticleForm):
    title = CharField(max_length=255, error_messages=_required("Title is required"))
    category = ChoiceField(
        label="Region",
        choices=as_choices(REGIONS),
        error_messages=_required("Region is required"),
    )
    country = ChoiceField(
        choices=as_choices(
            country for region in REGIONS.values() for country in region.countries
        ),
        error_messages=_required("Country is required"),
    )
    content = _content_field()
    excerpt = _excerpt_field()
    status = _status_field()
    thumbnail = _thumbnail_field()

    def clean(self) -> dict[str, Any] | None:
        cleaned = super().clean()
        region = REGIONS.get(self.cleaned_data.get("category", ""))
        country = self.cleaned_data.get("country")
        if region is not None and country and country not in region.countries:
            self.add_error("country", f"{country} is not in {region.name}")
        return cleaned


class BusinessArticleForm(ArticleForm):
    title = CharField(max_length=255, error_messages=_required("Title is required"))
    category = ChoiceField(
        choices=as_choices(BUSINESS_CATEGORIES),
        error_messages=_required("Category is required"),
    )
    region = ChoiceField(
        choices=as_choices(BUSINESS_REGIONS),
        error_messages=_required("Region is required"),
    )
    content = _content_field()
    excerpt = _excerpt_field()
    status = _status_field()
    thumbnail = _thumbnail_field()


class ScholarshipArticleForm(ArticleForm):
    title = CharField(max_length=255, error_messages=_required("Title is required"))
    continent = ChoiceField(
        choices=as_choices(CONTINENTS),
        error_messages=_required("Continent is required"),
    )
    country = CharField(
        max_length=100,
        placeholder="e.g. Germany",
        error_messages=_required("Country is required"),
    )
    scholarship_types = MultipleChoiceField(
        choices=as_choices(SCHOLARSHIP_TYPES),
        error_messages=_required("At least one scholarship type is required"),
    )
    funding_types = MultipleChoiceField(
        choices=as_choices(FUNDING_TYPES),
        error_messages=_required("At least one funding type is required"),
    )
    deadline = DateField(error_messages=_required("Deadline is required"))
    amount = CharField(
        required=False,
        max_length=100,
        placeholder="e.g. $10,000 per year",
    )
    application_url = URLField(
        required=False,
        label="Application URL",
        max_length=500,
        placeholder="https://",
    )
    content = _content_field()
    excerpt = _excerpt_field()
    status = _status_field()
    thumbnail = _thumbnail_field()


class SecurityArticleForm(ArticleForm):
    title = CharField(max_length=255, error_messages=_required("Title is required"))
    category = ChoiceField(
        choices=as_choices(SECURITY_CATEGORIES),
        error_messages=_required("Category is required"),
    )
    country = ChoiceField(
        choices=as_choices(sorted(AFRICAN_COUNTRIES)),
        error_messages=_required("Country is required"),
    )
    threat_level = ChoiceField(required=False, choices=list(THREAT_LEVELS.items()))
    tags = CharField(
        required=False,
        placeholder="e.g. elections, border, advisory",
        help_text="Separate tags with commas.",
    )
    content = _content_field()
    excerpt = _excerpt_field()
    status = _status_field()
    thumbnail = _thumbnail_field()

    def payload(self) -> dict[str, Any]:
        values = super().payload()
        raw = values.get("tags") or ""
        values["tags"] = list(
            dict.fromkeys(tag.strip() for tag in raw.split(",") if tag.strip())
        )
        return values


class AdminLoginForm(BaseForm):
    username = CharField(
        max_length=150,
        attrs={"autocomplete": "username"},
        error_messages=_required("Username is required"),
    )
    password = CharField(
        input_type="password",
        strip=False,
        attrs={"autocomplete": "current-password"},
        error_messages=_required("Password is required"),
    )
    next = CharField(required=False, input_type="hidden")


class LoginForm(BaseForm):
    email = EmailField(
        placeholder="you@example.com",
        attrs={"autocomplete": "email"},
        error_messages=_required("Email is required"),
    )
    password = CharField(
        input_type="password",
        strip=False,
        attrs={"autocomplete": "current-password"},
        error_messages=_required("Password is required"),
    )
    next = CharField(required=False, input_type="hidden")


class SignupForm(BaseForm):
    full_name = CharField(
        max_length=150, error_messages=_required("Full name is required")
    )
    email = EmailField(
        max_length=255,
        pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
        attrs={"autocomplete": "email"},
        error_messages={
            "required": "Email is required",
            "invalid": "Invalid email format",
        },
    )
    password = CharField(
        input_type="password",
        strip=False,
        min_length=MIN_PASSWORD_LENGTH,
        help_text=f"At least {MIN_PASSWORD_LENGTH} characters.",
        attrs={"autocomplete": "new-password"},
        error_messages=_required("Password is required"),
    )
    confirm_password = CharField(
        input_type="password",
        strip=False,
        attrs={"autocomplete": "new-password"},
        error_messages=_required("Please confirm your password"),
    )

    def clean(self) -> dict[str, Any] | None:
        password = self.cleaned_data.get("password")
        confirm = self.cleaned_data.get("confirm_password")
        if password and confirm and password != confirm:
            self.add_error("confirm_password", "Passwords do not match")
        return None


class ProfileForm(BaseForm):
    full_name = CharField(
        max_length=150, error_messages=_required("Full name is required")
    )
    phone = CharField(required=False, max_length=50)
    location = CharField(required=False, max_length=150)
    bio = TextAreaField(required=False, rows=4, max_length=2000)


class AvatarForm(BaseForm):
    avatar = FileField(
        accept="image/*",
        help_text="Images up to 2MB.",
        error_messages=_required("Please select an image"),
    )

    def clean(self) -> dict[str, Any] | None:
        _check_image(self, "avatar", "MAX_AVATAR_BYTES")
        return None


class PasswordChangeForm(BaseForm):
    new_password = CharField(
        input_type="password",
        strip=False,
        attrs={"autocomplete": "new-password"},
        error_messages=_required("New password is required"),
    )
    confirm_password = CharField(
        input_type="password",
        strip=False,
        attrs={"autocomplete": "new-password"},
        error_messages=_required("Please confirm your new password"),
    )
