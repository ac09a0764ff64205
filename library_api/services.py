import logging
from datetime import datetime
from typing import Generic, Optional

from library_api import auth, models
from library_api.exceptions import AuthenticationError, NotFoundError, ValidationError
from library_api.repositories import (
    AuthorRepository,
    BookRepository,
    CategoryRepository,
    ModelT,
    PublisherRepository,
    Repository,
    ReviewRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class EntityService(Generic[ModelT]):
    """Logging wrapper around a repository.

    Every failure is logged and re-raised. ``get_by_id`` returns ``None`` for a
    missing entity, while ``delete`` raises ``NotFoundError``.
    """

    entity_name = "entity"

    def __init__(self, repository: Repository[ModelT]):
        self.repository = repository

    def get_all(self) -> list[ModelT]:
        try:
            logger.info(f"Getting all {self.entity_name}s")
            return self.repository.get_all()
        except Exception as exc:
            logger.error(f"Error retrieving all {self.entity_name}s: {exc}")
            raise

    def get_by_id(self, entity_id: int) -> Optional[ModelT]:
        try:
            logger.info(f"Getting {self.entity_name} with ID: {entity_id}")
            entity = self.repository.get_by_id(entity_id)
            if entity is None:
                logger.warning(f"{self.entity_name.capitalize()} with ID: {entity_id} was not found")
            return entity
        except Exception as exc:
            logger.error(f"Error retrieving {self.entity_name} with ID {entity_id}: {exc}")
            raise

    def exists(self, entity_id: int) -> bool:
        return self.repository.exists(entity_id)

    def validate(self, entity: ModelT) -> None:
        """Hook for entity-specific checks run before anything is staged."""

    def add(self, entity: ModelT) -> ModelT:
        try:
            logger.info(f"Adding new {self.entity_name}")
            self.validate(entity)
            self.repository.add(entity)
            self.repository.save_changes()
            logger.info(f"{self.entity_name.capitalize()} added successfully with ID: {entity.id}")
            return entity
        except Exception as exc:
            logger.error(f"Error adding {self.entity_name}: {exc}")
            raise

    def update(self, entity: ModelT) -> ModelT:
        try:
            logger.info(f"Updating {self.entity_name} with ID: {entity.id}")
            self.validate(entity)
            entity = self.repository.update(entity)
            self.repository.save_changes()
            logger.info(f"{self.entity_name.capitalize()} updated successfully with ID: {entity.id}")
            return entity
        except Exception as exc:
            logger.error(f"Error updating {self.entity_name} with ID {entity.id}: {exc}")
            raise

    def delete(self, entity_id: int) -> None:
        try:
            logger.info(f"Deleting {self.entity_name} with ID: {entity_id}")
            entity = self.repository.get_by_id(entity_id)
            if entity is None:
                logger.warning(f"{self.entity_name.capitalize()} with ID: {entity_id} not found for deletion")
                raise NotFoundError(f"{self.entity_name.capitalize()} with ID: {entity_id} not found")
            self.repository.delete(entity)
            self.repository.save_changes()
            logger.info(f"{self.entity_name.capitalize()} deleted successfully with ID: {entity_id}")
        except Exception as exc:
            logger.error(f"Error deleting {self.entity_name} with ID {entity_id}: {exc}")
            raise


class AuthorService(EntityService[models.Author]):
    entity_name = "author"
    repository: AuthorRepository

    def get_author_with_books(self, author_id: int) -> Optional[models.Author]:
        try:
            logger.info(f"Getting author with books for ID: {author_id}")
            author = self.repository.get_author_with_books(author_id)
            if author is None:
                logger.warning(f"Author with ID: {author_id} was not found")
            return author
        except Exception as exc:
            logger.error(f"Error retrieving author with books for ID {author_id}: {exc}")
            raise


class CategoryService(EntityService[models.Category]):
    entity_name = "category"
    repository: CategoryRepository

    def get_category_with_books(self, category_id: int) -> Optional[models.Category]:
        try:
            logger.info(f"Getting category with books for ID: {category_id}")
            category = self.repository.get_category_with_books(category_id)
            if category is None:
                logger.warning(f"Category with ID: {category_id} was not found")
            return category
        except Exception as exc:
            logger.error(f"Error retrieving category with books for ID {category_id}: {exc}")
            raise


class PublisherService(EntityService[models.Publisher]):
    entity_name = "publisher"
    repository: PublisherRepository

    def get_publisher_with_books(self, publisher_id: int) -> Optional[models.Publisher]:
        try:
            logger.info(f"Getting publisher with books for ID: {publisher_id}")
            publisher = self.repository.get_publisher_with_books(publisher_id)
            if publisher is None:
                logger.warning(f"Publisher with ID: {publisher_id} was not found")
            return publisher
        except Exception as exc:
            logger.error(f"Error retrieving publisher with books for ID {publisher_id}: {exc}")
            raise


class BookService(EntityService[models.Book]):
    entity_name = "book"
    repository: BookRepository

    def __init__(
        self,
        repository: BookRepository,
        authors: AuthorRepository,
        categories: CategoryRepository,
        publishers: PublisherRepository,
    ):
        super().__init__(repository)
        self.authors = authors
        self.categories = categories
        self.publishers = publishers

    def validate(self, book: models.Book) -> None:
        references = (
            ("Author", self.authors, book.author_id),
            ("Category", self.categories, book.category_id),
            ("Publisher", self.publishers, book.publisher_id),
        )
        for label, repository, entity_id in references:
            if not repository.exists(entity_id):
                logger.warning(f"{label} with ID: {entity_id} not found for book")
                raise NotFoundError(f"{label} with ID: {entity_id} not found")

    def get_all_with_details(self) -> list[models.Book]:
        try:
            logger.info("Getting all books with details")
            return self.repository.get_all_with_details()
        except Exception as exc:
            logger.error(f"Error retrieving all books with details: {exc}")
            raise

    def get_book_with_details(self, book_id: int) -> Optional[models.Book]:
        try:
            logger.info(f"Getting book with details for ID: {book_id}")
            book = self.repository.get_book_with_details(book_id)
            if book is None:
                logger.warning(f"Book with ID: {book_id} was not found")
            return book
        except Exception as exc:
            logger.error(f"Error retrieving book details with ID {book_id}: {exc}")
            raise

    def get_books_by_author(self, author_id: int) -> list[models.Book]:
        self._require(self.authors, "Author", author_id)
        logger.info(f"Getting books by author ID: {author_id}")
        return self.repository.get_books_by_author(author_id)

    def get_books_by_category(self, category_id: int) -> list[models.Book]:
        self._require(self.categories, "Category", category_id)
        logger.info(f"Getting books by category ID: {category_id}")
        return self.repository.get_books_by_category(category_id)

    def get_books_by_publisher(self, publisher_id: int) -> list[models.Book]:
        self._require(self.publishers, "Publisher", publisher_id)
        logger.info(f"Getting books by publisher ID: {publisher_id}")
        return self.repository.get_books_by_publisher(publisher_id)

    @staticmethod
    def _require(repository: Repository, label: str, entity_id: int) -> None:
        if not repository.exists(entity_id):
            logger.warning(f"{label} with ID: {entity_id} not found when listing books")
            raise NotFoundError(f"{label} with ID: {entity_id} not found")


class ReviewService(EntityService[models.Review]):
    entity_name = "review"
    repository: ReviewRepository

    def __init__(self, repository: ReviewRepository, books: BookRepository):
        super().__init__(repository)
        self.books = books

    def _require_book(self, book_id: int, action: str) -> None:
        if not self.books.exists(book_id):
            logger.warning(f"Book with ID: {book_id} not found when {action}")
            raise NotFoundError(f"Book with ID: {book_id} not found")

    def validate(self, review: models.Review) -> None:
        if review.rating is None or not MIN_RATING <= review.rating <= MAX_RATING:
            logger.warning(
                f"Invalid rating value: {review.rating}. Rating must be between {MIN_RATING} and {MAX_RATING}"
            )
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        self._require_book(review.book_id, "saving review")

    def get_all_with_book(self) -> list[models.Review]:
        try:
            logger.info("Getting all reviews")
            return self.repository.get_all_with_book()
        except Exception as exc:
            logger.error(f"Error retrieving all reviews: {exc}")
            raise

    def get_review_with_book(self, review_id: int) -> Optional[models.Review]:
        try:
            logger.info(f"Getting review with ID: {review_id}")
            review = self.repository.get_review_with_book(review_id)
            if review is None:
                logger.warning(f"Review with ID: {review_id} was not found")
            return review
        except Exception as exc:
            logger.error(f"Error retrieving review with ID {review_id}: {exc}")
            raise

    def get_reviews_by_book(self, book_id: int) -> list[models.Review]:
        try:
            logger.info(f"Getting reviews for book ID: {book_id}")
            self._require_book(book_id, "retrieving reviews")
            return self.repository.get_reviews_by_book(book_id)
        except Exception as exc:
            logger.error(f"Error retrieving reviews for book ID {book_id}: {exc}")
            raise

    def get_average_rating_for_book(self, book_id: int) -> float:
        try:
            logger.info(f"Getting average rating for book ID: {book_id}")
            self._require_book(book_id, "retrieving average rating")
            return self.repository.get_average_rating_for_book(book_id)
        except Exception as exc:
            logger.error(f"Error retrieving average rating for book ID {book_id}: {exc}")
            raise


class AccountService:
    """Registration, login and refresh-token rotation over user records."""

    DEFAULT_ROLE = "User"
    INVALID_REFRESH = "Invalid or expired refresh token"

    def __init__(self, users: UserRepository):
        self.users = users

    def _issue_tokens(self, user: models.User) -> tuple[str, str]:
        token = auth.create_access_token(user)
        refresh_token = auth.generate_refresh_token()
        user.refresh_token = refresh_token
        user.refresh_token_expiry_time = auth.refresh_token_expiry()
        return token, refresh_token

    def register(
        self,
        user_name: str,
        email: str,
        full_name: str,
        password: str,
        role: Optional[str] = None,
    ) -> tuple[str, str]:
        role_name = role or self.DEFAULT_ROLE
        db_role = self.users.get_role(role_name)
        if db_role is None:
            logger.warning(f"Registration rejected, role {role_name!r} does not exist")
            raise ValidationError("Invalid role selected.")

        if self.users.get_by_user_name(user_name) is not None:
            raise ValidationError(f"Username '{user_name}' is already taken.")
        if self.users.get_by_email(email) is not None:
            raise ValidationError(f"Email '{email}' is already registered.")

        user = models.User(
            user_name=user_name,
            email=email,
            full_name=full_name,
            password_hash=auth.hash_password(password),
        )
        user.roles.append(db_role)
        self.users.add(user)
        # id is needed for the token subject; the commit below covers user, role and token together
        self.users.db.flush()

        tokens = self._issue_tokens(user)
        self.users.save_changes()
        logger.info(f"Registered user {user.id} with role {role_name}")
        return tokens

    def login(self, email: str, password: str) -> tuple[str, str]:
        user = self.users.get_by_email(email)
        if user is None:
            # same hashing cost as a wrong password
            auth.pwd_context.dummy_verify()
            logger.warning("Login failed: invalid credentials")
            raise AuthenticationError("Invalid credentials")
        if not auth.verify_password(password, user.password_hash):
            logger.warning("Login failed: invalid credentials")
            raise AuthenticationError("Invalid credentials")

        tokens = self._issue_tokens(user)
        self.users.save_changes()
        logger.info(f"User {user.id} logged in")
        return tokens

    def refresh(self, refresh_token: str, access_token: Optional[str] = None) -> tuple[str, str]:
        user = self.users.get_by_refresh_token(refresh_token)
        if (
            user is None
            or user.refresh_token_expiry_time is None
            or user.refresh_token_expiry_time <= datetime.utcnow()
        ):
            logger.warning("Refresh rejected: unknown or expired refresh token")
            raise AuthenticationError(self.INVALID_REFRESH)

        if access_token:
            try:
                principal = auth.get_principal_from_expired_token(access_token)
            except AuthenticationError:
                logger.warning(f"Refresh rejected for user {user.id}: invalid access token")
                raise AuthenticationError(self.INVALID_REFRESH)
            if principal.get("sub") != str(user.id):
                logger.warning(f"Refresh rejected for user {user.id}: token subject mismatch")
                raise AuthenticationError(self.INVALID_REFRESH)

        tokens = self._issue_tokens(user)
        self.users.save_changes()
        logger.info(f"Rotated refresh token for user {user.id}")
        return tokens

    def logout(self, user: models.User) -> None:
        user.refresh_token = None
        self.users.update(user)
        self.users.save_changes()
        logger.info(f"User {user.id} logged out")
