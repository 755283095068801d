"""Blog domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

ARTICLE_STATUSES = ("draft", "published", "archived")


class CategoryCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class ArticleCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=280)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    content: str = Field(min_length=1)
    coverImageUrl: Optional[str] = Field(default=None, max_length=500)
    categoryId: Optional[int] = None
    status: str = "draft"

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v not in ARTICLE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ARTICLE_STATUSES)}")
        return v


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=280)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = Field(default=None, min_length=1)
    coverImageUrl: Optional[str] = Field(default=None, max_length=500)
    categoryId: Optional[int] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v is not None and v not in ARTICLE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ARTICLE_STATUSES)}")
        return v


class ArticleResponse(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    coverImageUrl: Optional[str] = None
    categoryId: Optional[int] = None
    categoryName: Optional[str] = None
    authorId: Optional[int] = None
    status: str
    publishedAt: Optional[datetime] = None
    views: int
    createdAt: Optional[datetime] = None

    @classmethod
    def from_article(cls, article) -> "ArticleResponse":
        return cls(
            id=article.id,
            title=article.title,
            slug=article.slug,
            excerpt=article.excerpt,
            content=article.content,
            coverImageUrl=article.cover_image_url,
            categoryId=article.category_id,
            categoryName=article.category.name if article.category else None,
            authorId=article.author_id,
            status=article.status,
            publishedAt=article.published_at,
            views=article.views,
            createdAt=article.created_at,
        )


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total: int
    page: int
    limit: int
    pages: int
