import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm.exc import StaleDataError

from library_api import auth, models, schemas
from library_api.dependencies import get_category_service
from library_api.rate_limiter import default_limit, limiter
from library_api.services import CategoryService

router = APIRouter(prefix="/api/categories", tags=["Categories"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[schemas.CategoryOut])
@limiter.limit(default_limit)
def get_categories(request: Request, categories: CategoryService = Depends(get_category_service)):
    return categories.get_all()


@router.get("/{category_id}", response_model=schemas.CategoryOut)
@limiter.limit(default_limit)
def get_category(
    request: Request,
    category_id: int,
    categories: CategoryService = Depends(get_category_service),
):
    category = categories.get_by_id(category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


@router.get("/{category_id}/books", response_model=list[schemas.BookOut])
@limiter.limit(default_limit)
def get_category_books(
    request: Request,
    category_id: int,
    categories: CategoryService = Depends(get_category_service),
):
    category = categories.get_category_with_books(category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return [schemas.BookOut.from_model(book) for book in category.books]


@router.post("", response_model=schemas.CategoryOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def add_category(
    request: Request,
    category: schemas.CategoryCreate,
    response: Response,
    categories: CategoryService = Depends(get_category_service),
    user: models.User = Depends(auth.get_current_user),
):
    new_category = categories.add(models.Category(name=category.name))
    response.headers["Location"] = f"{router.prefix}/{new_category.id}"
    return new_category


@router.put("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def update_category(
    request: Request,
    category_id: int,
    category: schemas.CategoryUpdate,
    categories: CategoryService = Depends(get_category_service),
    user: models.User = Depends(auth.get_current_user),
):
    if category_id != category.id:
        logger.warning(f"Category ID mismatch: expected {category_id}, got {category.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category id mismatch")

    db_category = categories.get_by_id(category_id)
    if not db_category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    db_category.name = category.name
    try:
        categories.update(db_category)
    except StaleDataError:
        if not categories.exists(category_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        raise


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def delete_category(
    request: Request,
    category_id: int,
    categories: CategoryService = Depends(get_category_service),
    user: models.User = Depends(auth.require_role("Admin")),
):
    categories.delete(category_id)
