import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm.exc import StaleDataError

from library_api import auth, models, schemas
from library_api.dependencies import get_author_service
from library_api.rate_limiter import default_limit, limiter
from library_api.services import AuthorService

router = APIRouter(prefix="/api/authors", tags=["Authors"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[schemas.AuthorOut])
@limiter.limit(default_limit)
def get_authors(request: Request, authors: AuthorService = Depends(get_author_service)):
    return authors.get_all()


@router.get("/{author_id}", response_model=schemas.AuthorOut)
@limiter.limit(default_limit)
def get_author(request: Request, author_id: int, authors: AuthorService = Depends(get_author_service)):
    author = authors.get_by_id(author_id)
    if not author:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")
    return author


@router.get("/{author_id}/books", response_model=list[schemas.BookOut])
@limiter.limit(default_limit)
def get_author_books(request: Request, author_id: int, authors: AuthorService = Depends(get_author_service)):
    author = authors.get_author_with_books(author_id)
    if not author:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")
    return [schemas.BookOut.from_model(book) for book in author.books]


@router.post("", response_model=schemas.AuthorOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def add_author(
    request: Request,
    author: schemas.AuthorCreate,
    response: Response,
    authors: AuthorService = Depends(get_author_service),
    user: models.User = Depends(auth.get_current_user),
):
    new_author = authors.add(models.Author(name=author.name))
    response.headers["Location"] = f"{router.prefix}/{new_author.id}"
    return new_author


@router.put("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def update_author(
    request: Request,
    author_id: int,
    author: schemas.AuthorUpdate,
    authors: AuthorService = Depends(get_author_service),
    user: models.User = Depends(auth.get_current_user),
):
    if author_id != author.id:
        logger.warning(f"Author ID mismatch: expected {author_id}, got {author.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Author id mismatch")

    db_author = authors.get_by_id(author_id)
    if not db_author:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")

    db_author.name = author.name
    try:
        authors.update(db_author)
    except StaleDataError:
        if not authors.exists(author_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")
        raise


@router.delete("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def delete_author(
    request: Request,
    author_id: int,
    authors: AuthorService = Depends(get_author_service),
    user: models.User = Depends(auth.require_role("Admin")),
):
    authors.delete(author_id)
