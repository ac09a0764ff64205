from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from library_api import models
from library_api.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Generic data access over one mapped entity.

    ``add``, ``update`` and ``delete`` only stage changes on the session; nothing
    is visible to other sessions (or to this one, since sessions are created with
    ``autoflush=False``) until ``save_changes`` commits them in one transaction.
    """

    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[ModelT]:
        return list(self.db.scalars(select(self.model).order_by(self.model.id)))

    def get_by_id(self, entity_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def find(self, *criteria) -> list[ModelT]:
        return list(self.db.scalars(select(self.model).where(*criteria).order_by(self.model.id)))

    def exists(self, entity_id: int) -> bool:
        query = select(func.count()).select_from(self.model).where(self.model.id == entity_id)
        return self.db.scalar(query) > 0

    def add(self, entity: ModelT) -> None:
        self.db.add(entity)

    def update(self, entity: ModelT) -> ModelT:
        return self.db.merge(entity)

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)

    def save_changes(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class BookRepository(Repository[models.Book]):
    model = models.Book

    def _with_details(self):
        return select(models.Book).options(
            joinedload(models.Book.author),
            joinedload(models.Book.category),
            joinedload(models.Book.publisher),
        )

    def get_all_with_details(self) -> list[models.Book]:
        return list(self.db.scalars(self._with_details().order_by(models.Book.id)))

    def get_book_with_details(self, book_id: int) -> Optional[models.Book]:
        return self.db.scalars(self._with_details().where(models.Book.id == book_id)).first()

    def get_books_by_author(self, author_id: int) -> list[models.Book]:
        query = self._with_details().where(models.Book.author_id == author_id).order_by(models.Book.id)
        return list(self.db.scalars(query))

    def get_books_by_category(self, category_id: int) -> list[models.Book]:
        query = self._with_details().where(models.Book.category_id == category_id).order_by(models.Book.id)
        return list(self.db.scalars(query))

    def get_books_by_publisher(self, publisher_id: int) -> list[models.Book]:
        query = self._with_details().where(models.Book.publisher_id == publisher_id).order_by(models.Book.id)
        return list(self.db.scalars(query))


class AuthorRepository(Repository[models.Author]):
    model = models.Author

    def get_author_with_books(self, author_id: int) -> Optional[models.Author]:
        query = (
            select(models.Author)
            .where(models.Author.id == author_id)
            .options(
                selectinload(models.Author.books).joinedload(models.Book.category),
                selectinload(models.Author.books).joinedload(models.Book.publisher),
            )
        )
        return self.db.scalars(query).first()


class CategoryRepository(Repository[models.Category]):
    model = models.Category

    def get_category_with_books(self, category_id: int) -> Optional[models.Category]:
        query = (
            select(models.Category)
            .where(models.Category.id == category_id)
            .options(
                selectinload(models.Category.books).joinedload(models.Book.author),
                selectinload(models.Category.books).joinedload(models.Book.publisher),
            )
        )
        return self.db.scalars(query).first()


class PublisherRepository(Repository[models.Publisher]):
    model = models.Publisher

    def get_publisher_with_books(self, publisher_id: int) -> Optional[models.Publisher]:
        query = (
            select(models.Publisher)
            .where(models.Publisher.id == publisher_id)
            .options(
                selectinload(models.Publisher.books).joinedload(models.Book.author),
                selectinload(models.Publisher.books).joinedload(models.Book.category),
            )
        )
        return self.db.scalars(query).first()


class ReviewRepository(Repository[models.Review]):
    model = models.Review

    def get_all_with_book(self) -> list[models.Review]:
        query = select(models.Review).options(joinedload(models.Review.book)).order_by(models.Review.id)
        return list(self.db.scalars(query))

    def get_review_with_book(self, review_id: int) -> Optional[models.Review]:
        query = (
            select(models.Review)
            .where(models.Review.id == review_id)
            .options(joinedload(models.Review.book))
        )
        return self.db.scalars(query).first()

    def get_reviews_by_book(self, book_id: int) -> list[models.Review]:
        query = (
            select(models.Review)
            .where(models.Review.book_id == book_id)
            .options(joinedload(models.Review.book))
            .order_by(models.Review.id)
        )
        return list(self.db.scalars(query))

    def get_average_rating_for_book(self, book_id: int) -> float:
        query = select(func.avg(models.Review.rating)).where(models.Review.book_id == book_id)
        average = self.db.scalar(query)
        return float(average) if average is not None else 0.0


class UserRepository(Repository[models.User]):
    model = models.User

    def get_by_email(self, email: str) -> Optional[models.User]:
        return self.db.scalars(select(models.User).where(models.User.email == email)).first()

    def get_by_user_name(self, user_name: str) -> Optional[models.User]:
        return self.db.scalars(select(models.User).where(models.User.user_name == user_name)).first()

    def get_by_refresh_token(self, refresh_token: str) -> Optional[models.User]:
        query = select(models.User).where(models.User.refresh_token == refresh_token)
        return self.db.scalars(query).first()

    def get_role(self, name: str) -> Optional[models.Role]:
        return self.db.scalars(select(models.Role).where(models.Role.name == name)).first()
