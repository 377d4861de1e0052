# lawrepo/api/v1/endpoints/articles.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lawrepo.core.security import (
    get_current_user,
    get_current_user_optional,
    get_user_permissions,
    has_permission,
)
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.article import (
    ArticleCreate,
    ArticlePublic,
    ArticleStatusUpdate,
    ArticleUpdate,
    ArticleVersionCreate,
    ArticleVersionPublic,
)
from lawrepo.services import article_service
from lawrepo.services.article_service import InvalidStatusError

router = APIRouter(prefix="/articles", tags=["articles"])

# permission needed to move an article into each status; None means the author may do it
STATUS_PERMISSIONS = {
    "draft": None,
    "submitted": None,
    "under_review": "articles:review",
    "revision_requested": "articles:review",
    "rejected": "articles:review",
    "approved": "articles:approve",
    "published": "articles:publish",
}


def _get_article_or_404(db: Session, article_id: str):
    article = article_service.get_article(db, article_id)
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article


def _can_see(article, user: User | None) -> bool:
    if article.status == "published":
        return True
    if user is None:
        return False
    if article.author_id == user.id:
        return True
    return has_permission(get_user_permissions(user), "articles:review")


def _ensure_author(article, user: User) -> None:
    if article.author_id != user.id and not has_permission(
        get_user_permissions(user), "articles:edit"
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to edit this article")


@router.post("", response_model=ArticlePublic, status_code=status.HTTP_201_CREATED)
def create_article(
    obj_in: ArticleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return article_service.create_article(db, author=current_user, obj_in=obj_in)


@router.get("", response_model=List[ArticlePublic])
def list_published_articles(
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
    db: Session = Depends(get_db),
):
    if search:
        return article_service.search_published(db, search, limit=limit)
    return article_service.list_published(db, skip=skip, limit=limit)


@router.get("/mine", response_model=List[ArticlePublic])
def list_my_articles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return article_service.list_by_author(db, author_id=current_user.id)


@router.get("/{article_id}", response_model=ArticlePublic)
def get_article(
    article_id: str,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_current_user_optional),
):
    article = _get_article_or_404(db, article_id)
    if not _can_see(article, current_user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article


@router.put("/{article_id}", response_model=ArticlePublic)
def update_article(
    article_id: str,
    obj_in: ArticleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    article = _get_article_or_404(db, article_id)
    _ensure_author(article, current_user)
    return article_service.update_article(db, db_obj=article, obj_in=obj_in)


@router.patch("/{article_id}/status", response_model=ArticlePublic)
def update_article_status(
    article_id: str,
    payload: ArticleStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    article = _get_article_or_404(db, article_id)
    if payload.status not in STATUS_PERMISSIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid status {payload.status}")

    required = STATUS_PERMISSIONS[payload.status]
    if required is None:
        _ensure_author(article, current_user)
    elif not has_permission(get_user_permissions(current_user), required):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Missing permission: {required}")

    try:
        return article_service.update_status(
            db, article=article, new_status=payload.status, changed_by=current_user.id
        )
    except InvalidStatusError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/{article_id}/versions",
    response_model=ArticleVersionPublic,
    status_code=status.HTTP_201_CREATED,
)
def create_article_version(
    article_id: str,
    obj_in: ArticleVersionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    article = _get_article_or_404(db, article_id)
    _ensure_author(article, current_user)
    return article_service.create_version(db, article=article, author=current_user, obj_in=obj_in)


@router.get("/{article_id}/versions", response_model=List[ArticleVersionPublic])
def list_article_versions(
    article_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    article = _get_article_or_404(db, article_id)
    if not _can_see(article, current_user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article_service.list_versions(db, article_id=article.id)
