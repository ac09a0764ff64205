import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm.exc import StaleDataError

from library_api import auth, models, schemas
from library_api.dependencies import get_book_service, get_review_service
from library_api.rate_limiter import default_limit, limiter
from library_api.services import BookService, ReviewService

router = APIRouter(prefix="/api/books", tags=["Books"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[schemas.BookOut])
@limiter.limit(default_limit)
def get_books(
    request: Request,
    author_id: Optional[int] = Query(default=None, alias="authorId"),
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    publisher_id: Optional[int] = Query(default=None, alias="publisherId"),
    books: BookService = Depends(get_book_service),
):
    filters = [value for value in (author_id, category_id, publisher_id) if value is not None]
    if len(filters) > 1:
        logger.warning("Rejected book list request with more than one filter")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only one of authorId, categoryId or publisherId may be given",
        )

    if author_id is not None:
        result = books.get_books_by_author(author_id)
    elif category_id is not None:
        result = books.get_books_by_category(category_id)
    elif publisher_id is not None:
        result = books.get_books_by_publisher(publisher_id)
    else:
        result = books.get_all_with_details()
    logger.info(f"Found {len(result)} books")
    return [schemas.BookOut.from_model(book) for book in result]


@router.get("/{book_id}", response_model=schemas.BookOut)
@limiter.limit(default_limit)
def get_book(request: Request, book_id: int, books: BookService = Depends(get_book_service)):
    book = books.get_book_with_details(book_id)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    return schemas.BookOut.from_model(book)


@router.get("/{book_id}/reviews", response_model=list[schemas.ReviewOut])
@limiter.limit(default_limit)
def get_book_reviews(request: Request, book_id: int, reviews: ReviewService = Depends(get_review_service)):
    return [schemas.ReviewOut.from_model(review) for review in reviews.get_reviews_by_book(book_id)]


@router.get("/{book_id}/rating", response_model=schemas.RatingSummary)
@limiter.limit(default_limit)
def get_book_rating(request: Request, book_id: int, reviews: ReviewService = Depends(get_review_service)):
    average = reviews.get_average_rating_for_book(book_id)
    count = len(reviews.get_reviews_by_book(book_id))
    return schemas.RatingSummary(book_id=book_id, average_rating=average, review_count=count)


# Add Book
@router.post("", response_model=schemas.BookOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def add_book(
    request: Request,
    book: schemas.BookCreate,
    response: Response,
    books: BookService = Depends(get_book_service),
    user: models.User = Depends(auth.get_current_user),
):
    new_book = models.Book(
        title=book.title,
        isbn=book.isbn,
        category_id=book.category_id,
        author_id=book.author_id,
        publisher_id=book.publisher_id,
    )
    books.add(new_book)

    response.headers["Location"] = f"{router.prefix}/{new_book.id}"
    return schemas.BookOut.from_model(books.get_book_with_details(new_book.id))


@router.put("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def update_book(
    request: Request,
    book_id: int,
    book: schemas.BookUpdate,
    books: BookService = Depends(get_book_service),
    user: models.User = Depends(auth.get_current_user),
):
    if book_id != book.id:
        logger.warning(f"Book id {book_id} does not match the body id {book.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Book id mismatch")

    db_book = books.get_by_id(book_id)
    if not db_book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")

    db_book.title = book.title
    db_book.isbn = book.isbn
    db_book.category_id = book.category_id
    db_book.author_id = book.author_id
    db_book.publisher_id = book.publisher_id

    try:
        books.update(db_book)
    except StaleDataError:
        if not books.exists(book_id):
            logger.warning(f"Book with id {book_id} disappeared during update")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        raise


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_limit)
def delete_book(
    request: Request,
    book_id: int,
    books: BookService = Depends(get_book_service),
    user: models.User = Depends(auth.require_role("Admin")),
):
    books.delete(book_id)
