from unittest.mock import MagicMock

from sqlalchemy import func, select
from sqlalchemy.orm.exc import StaleDataError

from library_api import models
from library_api.dependencies import get_book_service
from library_api.main import app

NEW_BOOK = {
    "title": "Fantastic Beasts",
    "isbn": "111-222333",
    "categoryId": 1,
    "authorId": 1,
    "publisherId": 1,
}


def test_get_books_is_public(client):
    response = client.get("/api/books")
    assert response.status_code == 200
    titles = [book["title"] for book in response.json()]
    assert titles == [
        "Harry Potter and the Sorcerer's Stone",
        "Philosophiæ Naturalis Principia Mathematica",
    ]


def test_get_book_with_details(client):
    response = client.get("/api/books/2")
    assert response.status_code == 200
    body = response.json()
    assert body["authorName"] == "Isaac Newton"
    assert body["categoryName"] == "Science"
    assert body["publisherName"] == "Cambridge"


def test_get_missing_book(client):
    assert client.get("/api/books/999").status_code == 404


def test_filter_books(client):
    by_author = client.get("/api/books", params={"authorId": 2})
    assert [book["id"] for book in by_author.json()] == [2]

    by_category = client.get("/api/books", params={"categoryId": 1})
    assert [book["id"] for book in by_category.json()] == [1]

    by_publisher = client.get("/api/books", params={"publisherId": 1})
    assert [book["id"] for book in by_publisher.json()] == [1]


def test_filter_books_rejects_combined_filters(client):
    response = client.get("/api/books", params={"authorId": 1, "categoryId": 2})
    assert response.status_code == 400


def test_filter_books_by_missing_author(client):
    assert client.get("/api/books", params={"authorId": 42}).status_code == 404


def test_add_book_requires_auth(client):
    assert client.post("/api/books", json=NEW_BOOK).status_code == 401


def test_add_book(client, auth_headers):
    response = client.post("/api/books", json=NEW_BOOK, headers=auth_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 3
    assert body["authorName"] == "J.K. Rowling"
    assert response.headers["location"] == "/api/books/3"

    assert client.get("/api/books/3").json()["title"] == "Fantastic Beasts"


def test_add_book_with_unknown_author(client, auth_headers, db_session):
    response = client.post("/api/books", json={**NEW_BOOK, "authorId": 99}, headers=auth_headers)
    assert response.status_code == 404
    assert db_session.scalar(select(func.count()).select_from(models.Book)) == 2


def test_add_book_with_long_title(client, auth_headers):
    response = client.post("/api/books", json={**NEW_BOOK, "title": "x" * 101}, headers=auth_headers)
    assert response.status_code == 400


def test_update_book(client, auth_headers):
    payload = {**NEW_BOOK, "id": 1, "title": "Philosopher's Stone"}
    response = client.put("/api/books/1", json=payload, headers=auth_headers)
    assert response.status_code == 204
    assert client.get("/api/books/1").json()["title"] == "Philosopher's Stone"


def test_update_book_id_mismatch_never_reaches_service(client, auth_headers):
    service = MagicMock()
    app.dependency_overrides[get_book_service] = lambda: service

    response = client.put("/api/books/5", json={**NEW_BOOK, "id": 6}, headers=auth_headers)

    assert response.status_code == 400
    service.get_by_id.assert_not_called()
    service.update.assert_not_called()


def test_update_book_row_deleted_concurrently(client, auth_headers):
    service = MagicMock()
    service.update.side_effect = StaleDataError("UPDATE statement matched 0 rows")
    service.exists.return_value = False
    app.dependency_overrides[get_book_service] = lambda: service

    response = client.put("/api/books/1", json={**NEW_BOOK, "id": 1}, headers=auth_headers)

    assert response.status_code == 404
    service.exists.assert_called_once_with(1)


def test_update_book_conflict_on_existing_row(client, auth_headers):
    service = MagicMock()
    service.update.side_effect = StaleDataError("UPDATE statement matched 0 rows")
    service.exists.return_value = True
    app.dependency_overrides[get_book_service] = lambda: service

    response = client.put("/api/books/1", json={**NEW_BOOK, "id": 1}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"detail": "An unexpected error occurred."}


def test_update_missing_book(client, auth_headers):
    response = client.put("/api/books/99", json={**NEW_BOOK, "id": 99}, headers=auth_headers)
    assert response.status_code == 404


def test_update_book_with_unknown_publisher(client, auth_headers):
    payload = {**NEW_BOOK, "id": 1, "publisherId": 77}
    response = client.put("/api/books/1", json=payload, headers=auth_headers)
    assert response.status_code == 404
    assert client.get("/api/books/1").json()["publisherId"] == 1


def test_delete_book_requires_admin(client, auth_headers):
    response = client.delete("/api/books/1", headers=auth_headers)
    assert response.status_code == 403
    assert client.get("/api/books/1").status_code == 200


def test_delete_book_cascades_reviews(client, auth_headers, admin_headers, db_session):
    client.post(
        "/api/reviews",
        json={"reviewerName": "Sam", "content": "Loved it", "rating": 4, "bookId": 1},
        headers=auth_headers,
    )
    assert len(client.get("/api/books/1/reviews").json()) == 2

    response = client.delete("/api/books/1", headers=admin_headers)
    assert response.status_code == 204

    assert client.get("/api/books/1").status_code == 404
    remaining = db_session.scalar(
        select(func.count()).select_from(models.Review).where(models.Review.book_id == 1)
    )
    assert remaining == 0
    assert len(client.get("/api/reviews").json()) == 1


def test_delete_missing_book(client, admin_headers):
    assert client.delete("/api/books/99", headers=admin_headers).status_code == 404


def test_book_rating(client, auth_headers):
    client.post(
        "/api/reviews",
        json={"reviewerName": "Sam", "content": "Fine", "rating": 2, "bookId": 1},
        headers=auth_headers,
    )
    response = client.get("/api/books/1/rating")
    assert response.status_code == 200
    assert response.json() == {"bookId": 1, "averageRating": 3.5, "reviewCount": 2}


def test_rating_for_book_without_reviews(client, auth_headers):
    book_id = client.post("/api/books", json=NEW_BOOK, headers=auth_headers).json()["id"]
    response = client.get(f"/api/books/{book_id}/rating")
    assert response.json()["averageRating"] == 0.0
    assert response.json()["reviewCount"] == 0


def test_reviews_for_missing_book(client):
    assert client.get("/api/books/99/reviews").status_code == 404
