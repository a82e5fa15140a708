from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from engmetrics.models.base import Base, TimestampMixin


class TestItProject(TimestampMixin, Base):
    """One TestIt project document: metadata plus the whole suite forest as JSON."""

    __tablename__ = "testit_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    prefix: Mapped[str] = mapped_column(String(64), default="")
    test_suites: Mapped[list] = mapped_column(JSON, default=list)
