from btaml_db.models import Model
from sqlalchemy.orm import Mapped, mapped_column


class HTMLTestNote(Model):
    __tablename__ = "html_test_notes"
    title: Mapped[str] = mapped_column()
    published: Mapped[bool] = mapped_column(default=True)
