# lawrepo/services/article_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.article import ARTICLE_STATUSES, Article, ArticleVersion
from lawrepo.models.user import User
from lawrepo.schemas.article import ArticleCreate, ArticleUpdate, ArticleVersionCreate
from lawrepo.services import audit_service

logger = logging.getLogger(__name__)


class InvalidStatusError(Exception):
    pass


def create_article(db: Session, *, author: User, obj_in: ArticleCreate) -> Article:
    article = Article(
        title=obj_in.title,
        abstract=obj_in.abstract,
        content=obj_in.content,
        keywords=obj_in.keywords or [],
        author_id=author.id,
        status="draft",
    )
    db.add(article)
    db.commit()
    db.refresh(article)
    return article


def get_article(db: Session, article_id: str) -> Optional[Article]:
    if not is_valid_uuid(article_id):
        return None
    return db.get(Article, article_id)


def list_published(db: Session, *, skip: int = 0, limit: int = 20) -> List[Article]:
    return (
        db.query(Article)
        .filter(Article.status == "published")
        .order_by(Article.publication_date.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_by_author(db: Session, *, author_id: str) -> List[Article]:
    return (
        db.query(Article)
        .filter(Article.author_id == author_id)
        .order_by(Article.created_at.desc())
        .all()
    )


def search_published(db: Session, term: str, *, limit: int = 20) -> List[Article]:
    pattern = f"%{term}%"
    return (
        db.query(Article)
        .filter(
            Article.status == "published",
            or_(
                Article.title.ilike(pattern),
                Article.abstract.ilike(pattern),
                Article.content.ilike(pattern),
            ),
        )
        .order_by(Article.publication_date.desc())
        .limit(limit)
        .all()
    )


def update_article(db: Session, *, db_obj: Article, obj_in: ArticleUpdate) -> Article:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def update_status(
    db: Session,
    *,
    article: Article,
    new_status: str,
    changed_by: str | None = None,
) -> Article:
    if new_status not in ARTICLE_STATUSES:
        raise InvalidStatusError(
            f"Invalid status {new_status!r}; expected one of {', '.join(ARTICLE_STATUSES)}"
        )

    old_status = article.status
    now = datetime.now(timezone.utc)
    article.status = new_status
    if new_status == "published":
        article.publication_date = now
    elif new_status == "submitted":
        article.submission_date = now

    audit_service.record(
        db,
        action="article_status_changed",
        user_id=changed_by,
        resource_type="article",
        resource_id=article.id,
        old_values={"status": old_status},
        new_values={"status": new_status},
        commit=False,
    )
    db.add(article)
    db.commit()
    db.refresh(article)
    logger.info(f"Article {article.id} moved from {old_status} to {new_status}")
    return article


def create_version(
    db: Session,
    *,
    article: Article,
    author: User,
    obj_in: ArticleVersionCreate,
) -> ArticleVersion:
    current = (
        db.query(func.max(ArticleVersion.version_number))
        .filter(ArticleVersion.article_id == article.id)
        .scalar()
    )
    version = ArticleVersion(
        article_id=article.id,
        version_number=(current or 0) + 1,
        content=obj_in.content,
        changes_summary=obj_in.changes_summary,
        created_by=author.id,
    )
    db.add(version)
    db.commit()
    db.refresh(version)
    return version


def list_versions(db: Session, *, article_id: str) -> List[ArticleVersion]:
    return (
        db.query(ArticleVersion)
        .filter(ArticleVersion.article_id == article_id)
        .order_by(ArticleVersion.version_number.desc())
        .all()
    )
