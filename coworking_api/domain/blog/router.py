"""Blog router - public reading endpoints and admin CMS"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    ArticleCreate,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from .service import BlogService

router = APIRouter(prefix="/blog", tags=["Blog"])


def get_blog_service(db: Session = Depends(get_db)) -> BlogService:
    """Dependency injection for BlogService"""
    return BlogService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(service: BlogService = Depends(get_blog_service)):
    return service.list_categories()


@router.get("/articles", response_model=ArticleListResponse)
async def list_published_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: Optional[str] = Query(None),
    service: BlogService = Depends(get_blog_service),
):
    result = service.list_published(page, limit, category)
    result["articles"] = [ArticleResponse.from_article(a) for a in result["articles"]]
    return result


@router.get("/articles/{slug}", response_model=ArticleResponse)
async def read_article(slug: str, service: BlogService = Depends(get_blog_service)):
    return ArticleResponse.from_article(service.read_published(slug))


# ============================================================================
# ADMIN
# ============================================================================


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    return service.create_category(data)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    return service.update_category(category_id, data)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    service.delete_category(category_id)
    return {"message": "Category deleted"}


@router.get("/admin/articles", response_model=list[ArticleResponse])
async def list_all_articles(
    status: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    return [ArticleResponse.from_article(a) for a in service.list_articles(status)]


@router.get("/admin/articles/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: int,
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    return ArticleResponse.from_article(service.get_article(article_id))


@router.post("/admin/articles", response_model=ArticleResponse, status_code=201)
async def create_article(
    data: ArticleCreate,
    user: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    return ArticleResponse.from_article(service.create_article(data, user))


@router.patch("/admin/articles/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    return ArticleResponse.from_article(service.update_article(article_id, data))


@router.delete("/admin/articles/{article_id}")
async def delete_article(
    article_id: int,
    _: User = Depends(require_admin),
    service: BlogService = Depends(get_blog_service),
):
    service.delete_article(article_id)
    return {"message": "Article deleted"}
