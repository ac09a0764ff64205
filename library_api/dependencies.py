"""Composition root for request-scoped repositories and services.

Every provider builds its objects from the request's session, so one request
shares one unit of work across all the services it touches.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from library_api.database import get_db
from library_api.repositories import (
    AuthorRepository,
    BookRepository,
    CategoryRepository,
    PublisherRepository,
    ReviewRepository,
    UserRepository,
)
from library_api.services import (
    AccountService,
    AuthorService,
    BookService,
    CategoryService,
    PublisherService,
    ReviewService,
)


def get_author_service(db: Session = Depends(get_db)) -> AuthorService:
    return AuthorService(AuthorRepository(db))


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(CategoryRepository(db))


def get_publisher_service(db: Session = Depends(get_db)) -> PublisherService:
    return PublisherService(PublisherRepository(db))


def get_book_service(db: Session = Depends(get_db)) -> BookService:
    return BookService(
        BookRepository(db),
        authors=AuthorRepository(db),
        categories=CategoryRepository(db),
        publishers=PublisherRepository(db),
    )


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(ReviewRepository(db), books=BookRepository(db))


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    return AccountService(UserRepository(db))
