from datetime import date
from typing import Any, ClassVar

from btaml_auth.models import USER_TABLE_NAME
from btaml_db.models import Model, TimestampMixin
from sqlalchemy import JSON, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .taxonomy import BUSINESS_CATEGORIES, REGIONS, SCHOLARSHIP_CATEGORY

DRAFT = "draft"
PUBLISHED = "published"
STATUSES = (DRAFT, PUBLISHED)


def join_multi(values: list[str] | None) -> str | None:
    """Join a multi-valued taxonomy into the flat ", "-separated form."""
    if not values:
        return None
    return ", ".join(values)


def split_multi(text: str | None) -> list[str]:
    """Inverse of `join_multi`. Lossy for values that contain ", "."""
    if not text:
        return []
    return text.split(", ")


class Article(Model, TimestampMixin):
    """
    Every piece of published content lives in the `articles` table.

    Rows are stored with single-table inheritance: `kind` selects the
    variant class, and each variant only sees its own rows through its
    `objects` manager. Variant-only columns are nullable at the table level.
    """

    __tablename__ = "articles"

    kind: Mapped[str] = mapped_column(String(20), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    thumbnail: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(100), index=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=DRAFT, index=True)
    author: Mapped[str] = mapped_column(String(150), default="Admin")
    views: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    __mapper_args__: ClassVar[dict[str, Any]] = {"polymorphic_on": "kind"}

    # Admin URL segment and upload prefix of the variant
    section: ClassVar[str] = ""
    upload_prefix: ClassVar[str] = "articles"
    verbose_name: ClassVar[str] = "Article"

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED

    @property
    def detail_url(self) -> str:
        return f"/{self.section}/{self.id}"

    def as_row(self) -> dict[str, Any]:
        """
        The flat row shape shared by every variant.

        Multi-valued taxonomies are joined with ", " and business posts
        report their region in `country`.
        """
        return {
            "id": self.id,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "category": self.category,
            "country": self.country,
            "content": self.content,
            "excerpt": self.excerpt,
            "status": self.status,
            "author": self.author,
            "views": self.views,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "continent": None,
            "scholarship_types": None,
            "funding_types": None,
            "amount": None,
            "deadline": None,
            "application_url": None,
            "threat_level": None,
            "tags": None,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id}, title={self.title!r})>"


class RegionalArticle(Article):
    """News from one of the five African regions; `category` is the region."""

    __mapper_args__: ClassVar[dict[str, Any]] = {"polymorphic_identity": "regional"}

    section: ClassVar[str] = "africa"
    upload_prefix: ClassVar[str] = "articles"
    verbose_name: ClassVar[str] = "Regional article"

    @property
    def region_slug(self) -> str:
        region = REGIONS.get(self.category)
        return region.slug if region else "eastern"

    @property
    def detail_url(self) -> str:
        return f"/africa/{self.region_slug}/{self.id}"


class BusinessArticle(Article):
    __mapper_args__: ClassVar[dict[str, Any]] = {"polymorphic_identity": "business"}

    section: ClassVar[str] = "business"
    upload_prefix: ClassVar[str] = "business"
    verbose_name: ClassVar[str] = "Business article"

    region: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def category_slug(self) -> str:
        return BUSINESS_CATEGORIES.get(self.category, "agriculture-agribusiness")

    @property
    def detail_url(self) -> str:
        return f"/business/{self.category_slug}/{self.id}"

    def as_row(self) -> dict[str, Any]:
        row = super().as_row()
        row["country"] = self.region
        return row


class ScholarshipArticle(Article):
    __mapper_args__: ClassVar[dict[str, Any]] = {
        "polymorphic_identity": "scholarship"
    }

    section: ClassVar[str] = "scholarship"
    upload_prefix: ClassVar[str] = "scholarships"
    verbose_name: ClassVar[str] = "Scholarship"

    continent: Mapped[str | None] = mapped_column(String(50), nullable=True)
    scholarship_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    funding_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    amount: Mapped[str | None] = mapped_column(String(100), nullable=True)
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    application_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("category", SCHOLARSHIP_CATEGORY)
        super().__init__(**kwargs)

    def as_row(self) -> dict[str, Any]:
        row = super().as_row()
        row.update(
            {
                "continent": self.continent,
                "scholarship_types": join_multi(self.scholarship_types),
                "funding_types": join_multi(self.funding_types),
                "amount": self.amount,
                "deadline": self.deadline.isoformat() if self.deadline else None,
                "application_url": self.application_url,
            }
        )
        return row


class SecurityArticle(Article):
    __mapper_args__: ClassVar[dict[str, Any]] = {"polymorphic_identity": "security"}

    section: ClassVar[str] = "security"
    upload_prefix: ClassVar[str] = "security"
    verbose_name: ClassVar[str] = "Security update"

    threat_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)

    def as_row(self) -> dict[str, Any]:
        row = super().as_row()
        row["threat_level"] = self.threat_level
        row["tags"] = join_multi(self.tags)
        return row


# Admin sections in navigation order
VARIANTS: dict[str, type[Article]] = {
    variant.section: variant
    for variant in (RegionalArticle, BusinessArticle, ScholarshipArticle, SecurityArticle)
}


class Profile(Model, TimestampMixin):
    """Public account details, keyed by the owning user's id."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(
        ForeignKey(f"{USER_TABLE_NAME}.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str] = mapped_column(String(150), default="")
    phone: Mapped[str] = mapped_column(String(50), default="")
    location: Mapped[str] = mapped_column(String(150), default="")
    avatar_url: Mapped[str] = mapped_column(String(500), default="")
    bio: Mapped[str] = mapped_column(Text, default="")
    custom_uid: Mapped[str | None] = mapped_column(
        String(32), unique=True, nullable=True
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, custom_uid={self.custom_uid!r})>"
