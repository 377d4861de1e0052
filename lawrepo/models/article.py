# lawrepo/models/article.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from lawrepo.db.base_class import Base
from lawrepo.db.types import GUID, JSONType, new_uuid

ARTICLE_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "revision_requested",
    "approved",
    "published",
    "rejected",
)


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'submitted', 'under_review', 'revision_requested', "
            "'approved', 'published', 'rejected')",
            name="ck_articles_status",
        ),
    )

    id = Column(GUID, primary_key=True, default=new_uuid)
    title = Column(String(500), nullable=False)
    abstract = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    author_id = Column(GUID, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(30), nullable=False, default="draft", index=True)

    submission_date = Column(DateTime(timezone=True), nullable=True)
    publication_date = Column(DateTime(timezone=True), nullable=True, index=True)

    volume = Column(String(20), nullable=True)
    issue = Column(String(20), nullable=True)
    page_start = Column(Integer, nullable=True)
    page_end = Column(Integer, nullable=True)
    keywords = Column(JSONType, nullable=True)
    doi = Column(String(255), nullable=True)

    citation_count = Column(Integer, nullable=False, default=0)
    download_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class ArticleVersion(Base):
    __tablename__ = "article_versions"
    __table_args__ = (
        UniqueConstraint("article_id", "version_number", name="uq_article_versions_number"),
    )

    id = Column(GUID, primary_key=True, default=new_uuid)
    article_id = Column(GUID, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    changes_summary = Column(Text, nullable=True)
    created_by = Column(GUID, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
