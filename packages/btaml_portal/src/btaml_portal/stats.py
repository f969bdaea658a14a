from dataclasses import dataclass, field

from btaml_db import Sum
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DRAFT, PUBLISHED, VARIANTS, Article


@dataclass
class SectionStats:
    published: int = 0
    drafts: int = 0

    @property
    def total(self) -> int:
        return self.published + self.drafts


@dataclass
class ContentStats:
    total_articles: int = 0
    published: int = 0
    drafts: int = 0
    total_views: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_section: dict[str, SectionStats] = field(default_factory=dict)


async def collect_stats(db: AsyncSession) -> ContentStats:
    """Dashboard figures over every article, whatever its variant."""
    by_status = await Article.objects.all().count_by(db, "status")
    totals = await Article.objects.all().aggregate(db, views=Sum("views"))
    by_category = await Article.objects.all().count_by(db, "category")

    by_section: dict[str, SectionStats] = {}
    for section, variant in VARIANTS.items():
        by_section[section] = SectionStats(
            published=await variant.objects.filter(status=PUBLISHED).count(db),
            drafts=await variant.objects.filter(status=DRAFT).count(db),
        )

    return ContentStats(
        total_articles=sum(by_status.values()),
        published=by_status.get(PUBLISHED, 0),
        drafts=by_status.get(DRAFT, 0),
        total_views=totals.get("views") or 0,
        by_category=dict(sorted(by_category.items())),
        by_section=by_section,
    )
