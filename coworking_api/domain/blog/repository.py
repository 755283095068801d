"""Blog repository - Database operations for articles and categories"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models_content import Article, ArticleCategory


class BlogRepository:
    """Repository for blog database operations"""

    @staticmethod
    def get_categories(db: Session) -> list[ArticleCategory]:
        return db.query(ArticleCategory).order_by(ArticleCategory.name).all()

    @staticmethod
    def get_category_by_id(db: Session, category_id: int) -> Optional[ArticleCategory]:
        return db.query(ArticleCategory).filter(ArticleCategory.id == category_id).first()

    @staticmethod
    def category_slug_exists(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(ArticleCategory.id).filter(ArticleCategory.slug == slug)
        if exclude_id is not None:
            query = query.filter(ArticleCategory.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def article_slug_exists(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Article.id).filter(Article.slug == slug)
        if exclude_id is not None:
            query = query.filter(Article.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def get_published_articles(
        db: Session, category_slug: Optional[str], offset: int, limit: int
    ) -> tuple[list[Article], int]:
        query = db.query(Article).options(joinedload(Article.category)).filter(Article.status == "published")
        if category_slug:
            query = query.join(ArticleCategory).filter(ArticleCategory.slug == category_slug)
        total = query.count()
        articles = query.order_by(Article.published_at.desc()).offset(offset).limit(limit).all()
        return articles, total

    @staticmethod
    def get_published_article_by_slug(db: Session, slug: str) -> Optional[Article]:
        return (
            db.query(Article)
            .options(joinedload(Article.category))
            .filter(Article.slug == slug, Article.status == "published")
            .first()
        )

    @staticmethod
    def get_articles(db: Session, status: Optional[str] = None) -> list[Article]:
        query = db.query(Article).options(joinedload(Article.category))
        if status:
            query = query.filter(Article.status == status)
        return query.order_by(Article.created_at.desc()).all()

    @staticmethod
    def get_article_by_id(db: Session, article_id: int) -> Optional[Article]:
        return db.query(Article).options(joinedload(Article.category)).filter(Article.id == article_id).first()
