"""Blog service - Business logic for articles and categories"""

import logging
import math
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_content import Article, ArticleCategory
from ...shared import clock
from ...utils.sanitization import sanitize_string, slugify
from .repository import BlogRepository
from .schemas import ArticleCreate, ArticleUpdate, CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class BlogService:
    """Service layer for blog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BlogRepository()

    # ============================================================================
    # CATEGORIES
    # ============================================================================

    def list_categories(self) -> list[ArticleCategory]:
        return self.repo.get_categories(self.db)

    def get_category(self, category_id: int) -> ArticleCategory:
        category = self.repo.get_category_by_id(self.db, category_id)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
        return category

    def _category_slug(self, value: str, exclude_id: Optional[int] = None) -> str:
        slug = slugify(value, max_length=120)
        if not slug:
            raise HTTPException(status_code=400, detail="Slug cannot be empty")
        if self.repo.category_slug_exists(self.db, slug, exclude_id):
            raise HTTPException(status_code=409, detail="A category with this slug already exists")
        return slug

    def create_category(self, data: CategoryCreate) -> ArticleCategory:
        category = ArticleCategory(
            name=sanitize_string(data.name),
            slug=self._category_slug(data.slug or data.name),
            description=sanitize_string(data.description),
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> ArticleCategory:
        category = self.get_category(category_id)
        if data.name is not None:
            category.name = sanitize_string(data.name)
        if data.slug is not None:
            category.slug = self._category_slug(data.slug, exclude_id=category.id)
        if data.description is not None:
            category.description = sanitize_string(data.description)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int):
        """Articles of the category become uncategorized"""
        category = self.get_category(category_id)
        for article in category.articles:
            article.category_id = None
        self.db.delete(category)
        self.db.commit()

    # ============================================================================
    # ARTICLES
    # ============================================================================

    def list_published(self, page: int, limit: int, category: Optional[str] = None) -> dict:
        articles, total = self.repo.get_published_articles(self.db, category, (page - 1) * limit, limit)
        return {
            "articles": articles,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if total else 0,
        }

    def read_published(self, slug: str) -> Article:
        """Public read; counts a view"""
        article = self.repo.get_published_article_by_slug(self.db, slug)
        if not article:
            raise HTTPException(status_code=404, detail="Article not found")
        article.views = (article.views or 0) + 1
        self.db.commit()
        self.db.refresh(article)
        return article

    def list_articles(self, status: Optional[str] = None) -> list[Article]:
        return self.repo.get_articles(self.db, status)

    def get_article(self, article_id: int) -> Article:
        article = self.repo.get_article_by_id(self.db, article_id)
        if not article:
            raise HTTPException(status_code=404, detail="Article not found")
        return article

    def _article_slug(self, value: str, exclude_id: Optional[int] = None) -> str:
        slug = slugify(value, max_length=280)
        if not slug:
            raise HTTPException(status_code=400, detail="Slug cannot be empty")
        if self.repo.article_slug_exists(self.db, slug, exclude_id):
            raise HTTPException(status_code=409, detail="An article with this slug already exists")
        return slug

    def _check_category(self, category_id: Optional[int]):
        if category_id is not None:
            self.get_category(category_id)

    def create_article(self, data: ArticleCreate, user: User) -> Article:
        self._check_category(data.categoryId)
        article = Article(
            title=sanitize_string(data.title),
            slug=self._article_slug(data.slug or data.title),
            excerpt=sanitize_string(data.excerpt),
            content=sanitize_string(data.content),
            cover_image_url=data.coverImageUrl,
            category_id=data.categoryId,
            author_id=user.id,
            status=data.status,
            published_at=clock.local_now() if data.status == "published" else None,
        )
        self.db.add(article)
        self.db.commit()
        self.db.refresh(article)
        logger.info(f"📰 Article {article.id} ({article.slug}) created by {user.email}")
        return article

    def update_article(self, article_id: int, data: ArticleUpdate) -> Article:
        article = self.get_article(article_id)
        if data.title is not None:
            article.title = sanitize_string(data.title)
        if data.slug is not None:
            article.slug = self._article_slug(data.slug, exclude_id=article.id)
        if data.excerpt is not None:
            article.excerpt = sanitize_string(data.excerpt)
        if data.content is not None:
            article.content = sanitize_string(data.content)
        if data.coverImageUrl is not None:
            article.cover_image_url = data.coverImageUrl
        if data.categoryId is not None:
            self._check_category(data.categoryId)
            article.category_id = data.categoryId
        if data.status is not None:
            if data.status == "published" and not article.published_at:
                article.published_at = clock.local_now()
            article.status = data.status

        self.db.commit()
        self.db.refresh(article)
        return article

    def delete_article(self, article_id: int):
        article = self.get_article(article_id)
        self.db.delete(article)
        self.db.commit()
        logger.info(f"🗑️ Article {article_id} deleted")
