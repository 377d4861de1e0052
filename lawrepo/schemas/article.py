# lawrepo/schemas/article.py
from datetime import datetime
from typing import List

from pydantic import BaseModel


class ArticleBase(BaseModel):
    title: str
    abstract: str | None = None
    content: str | None = None
    keywords: List[str] | None = None


class ArticleCreate(ArticleBase):
    pass


class ArticleUpdate(BaseModel):
    title: str | None = None
    abstract: str | None = None
    content: str | None = None
    keywords: List[str] | None = None
    volume: str | None = None
    issue: str | None = None
    page_start: int | None = None
    page_end: int | None = None
    doi: str | None = None
    is_featured: bool | None = None


class ArticleStatusUpdate(BaseModel):
    status: str


class ArticlePublic(ArticleBase):
    id: str
    author_id: str
    status: str
    submission_date: datetime | None = None
    publication_date: datetime | None = None
    volume: str | None = None
    issue: str | None = None
    page_start: int | None = None
    page_end: int | None = None
    doi: str | None = None
    citation_count: int = 0
    download_count: int = 0
    view_count: int = 0
    is_featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ArticleVersionCreate(BaseModel):
    content: str
    changes_summary: str | None = None


class ArticleVersionPublic(BaseModel):
    id: str
    article_id: str
    version_number: int
    content: str
    changes_summary: str | None = None
    created_by: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
