import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from library_api import models

PHONE_PATTERN = r"^(\+\d{1,3})?(\d{6,15})$"


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case accepted too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Auth
class RegisterRequest(CamelModel):
    user_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=8, max_length=128)
    role: Optional[str] = Field(default=None, max_length=50)

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        if not re.search(r"\d", value):
            raise ValueError("Password must contain a digit")
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain a lowercase letter")
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain an uppercase letter")
        if not re.search(r"[^a-zA-Z0-9]", value):
            raise ValueError("Password must contain a non-alphanumeric character")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=1)
    # optional, possibly expired, access token; must belong to the refresh token's owner
    token: Optional[str] = None


class TokenResponse(CamelModel):
    token: str
    refresh_token: str


class MessageResponse(CamelModel):
    message: str


class UserPublic(CamelModel):
    id: int
    user_name: str
    email: EmailStr
    full_name: Optional[str]
    roles: list[str]


# Authors
class AuthorBase(CamelModel):
    name: str = Field(min_length=1, max_length=100)


class AuthorCreate(AuthorBase):
    pass


class AuthorUpdate(AuthorBase):
    id: int


class AuthorOut(AuthorBase):
    id: int


# Categories
class CategoryBase(CamelModel):
    name: str = Field(min_length=1, max_length=50)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(CategoryBase):
    id: int


class CategoryOut(CategoryBase):
    id: int


# Publishers
class PublisherBase(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=200)
    contact_number: str = Field(max_length=20, pattern=PHONE_PATTERN)


class PublisherCreate(PublisherBase):
    pass


class PublisherUpdate(PublisherBase):
    id: int


class PublisherOut(PublisherBase):
    id: int


# Books
class BookBase(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    isbn: str = Field(min_length=1, max_length=20)
    category_id: int = Field(ge=1)
    author_id: int = Field(ge=1)
    publisher_id: int = Field(ge=1)


class BookCreate(BookBase):
    pass


class BookUpdate(BookBase):
    id: int


class BookOut(BookBase):
    id: int
    author_name: Optional[str] = None
    category_name: Optional[str] = None
    publisher_name: Optional[str] = None
    publisher_address: Optional[str] = None
    publisher_contact_number: Optional[str] = None

    @classmethod
    def from_model(cls, book: models.Book) -> "BookOut":
        return cls(
            id=book.id,
            title=book.title,
            isbn=book.isbn,
            category_id=book.category_id,
            author_id=book.author_id,
            publisher_id=book.publisher_id,
            author_name=book.author.name if book.author else None,
            category_name=book.category.name if book.category else None,
            publisher_name=book.publisher.name if book.publisher else None,
            publisher_address=book.publisher.address if book.publisher else None,
            publisher_contact_number=book.publisher.contact_number if book.publisher else None,
        )


# Reviews
class ReviewBase(CamelModel):
    reviewer_name: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=1000)
    rating: int = Field(ge=1, le=5)
    book_id: int = Field(ge=1)


class ReviewCreate(ReviewBase):
    pass


class ReviewUpdate(ReviewBase):
    id: int


class ReviewOut(ReviewBase):
    id: int
    book_title: Optional[str] = None

    @classmethod
    def from_model(cls, review: models.Review) -> "ReviewOut":
        return cls(
            id=review.id,
            reviewer_name=review.reviewer_name,
            content=review.content,
            rating=review.rating,
            book_id=review.book_id,
            book_title=review.book.title if review.book else None,
        )


class RatingSummary(CamelModel):
    book_id: int
    average_rating: float
    review_count: int


# Health
class HealthCheckEntry(BaseModel):
    name: str
    status: str
    description: Optional[str] = None


class HealthReport(BaseModel):
    status: str
    checks: list[HealthCheckEntry]
    totalDuration: str
