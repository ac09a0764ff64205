import pytest

PUBLISHER = {"name": "Penguin", "address": "New York", "contactNumber": "+15551234567"}


@pytest.mark.parametrize(
    "path, names",
    [
        ("/api/authors", ["J.K. Rowling", "Isaac Newton"]),
        ("/api/categories", ["Fantasy", "Science"]),
        ("/api/publishers", ["Bloomsbury", "Cambridge"]),
    ],
)
def test_list_seeded_entities(client, path, names):
    response = client.get(path)
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == names


@pytest.mark.parametrize("path", ["/api/authors/99", "/api/categories/99", "/api/publishers/99"])
def test_get_missing_entity(client, path):
    assert client.get(path).status_code == 404


def test_author_crud(client, auth_headers, admin_headers):
    response = client.post("/api/authors", json={"name": "Ursula K. Le Guin"}, headers=auth_headers)
    assert response.status_code == 201
    author_id = response.json()["id"]
    assert response.headers["location"] == f"/api/authors/{author_id}"

    response = client.put(
        f"/api/authors/{author_id}",
        json={"id": author_id, "name": "Ursula Le Guin"},
        headers=auth_headers,
    )
    assert response.status_code == 204
    assert client.get(f"/api/authors/{author_id}").json()["name"] == "Ursula Le Guin"

    assert client.delete(f"/api/authors/{author_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/authors/{author_id}").status_code == 404


def test_update_author_id_mismatch(client, auth_headers):
    response = client.put("/api/authors/1", json={"id": 2, "name": "Someone"}, headers=auth_headers)
    assert response.status_code == 400
    assert client.get("/api/authors/1").json()["name"] == "J.K. Rowling"


def test_delete_author_with_books_is_refused(client, admin_headers):
    response = client.delete("/api/authors/1", headers=admin_headers)
    assert response.status_code == 500
    assert response.json() == {"detail": "An unexpected error occurred."}
    assert client.get("/api/authors/1").status_code == 200
    assert client.get("/api/books/1").json()["authorId"] == 1


def test_delete_author_requires_admin(client, auth_headers):
    assert client.delete("/api/authors/2", headers=auth_headers).status_code == 403


def test_delete_missing_category(client, admin_headers):
    assert client.delete("/api/categories/99", headers=admin_headers).status_code == 404


def test_author_books(client):
    response = client.get("/api/authors/2/books")
    assert response.status_code == 200
    books = response.json()
    assert [book["title"] for book in books] == ["Philosophiæ Naturalis Principia Mathematica"]
    assert books[0]["publisherName"] == "Cambridge"


def test_category_books(client):
    response = client.get("/api/categories/1/books")
    assert [book["id"] for book in response.json()] == [1]


def test_publisher_books_for_missing_publisher(client):
    assert client.get("/api/publishers/99/books").status_code == 404


def test_category_crud(client, auth_headers, admin_headers):
    response = client.post("/api/categories", json={"name": "Poetry"}, headers=auth_headers)
    assert response.status_code == 201
    category_id = response.json()["id"]

    response = client.put(
        f"/api/categories/{category_id}",
        json={"id": category_id, "name": "Verse"},
        headers=auth_headers,
    )
    assert response.status_code == 204
    assert client.get(f"/api/categories/{category_id}").json()["name"] == "Verse"

    assert client.delete(f"/api/categories/{category_id}", headers=admin_headers).status_code == 204


def test_category_name_too_long(client, auth_headers):
    response = client.post("/api/categories", json={"name": "c" * 51}, headers=auth_headers)
    assert response.status_code == 400


def test_publisher_crud(client, auth_headers, admin_headers):
    response = client.post("/api/publishers", json=PUBLISHER, headers=auth_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["contactNumber"] == "+15551234567"

    publisher_id = body["id"]
    response = client.put(
        f"/api/publishers/{publisher_id}",
        json={**PUBLISHER, "id": publisher_id, "address": "London"},
        headers=auth_headers,
    )
    assert response.status_code == 204
    assert client.get(f"/api/publishers/{publisher_id}").json()["address"] == "London"

    assert client.delete(f"/api/publishers/{publisher_id}", headers=admin_headers).status_code == 204


@pytest.mark.parametrize("contact_number", ["12345", "phone-number", "+1234-567890"])
def test_publisher_rejects_bad_contact_number(client, auth_headers, contact_number):
    payload = {**PUBLISHER, "contactNumber": contact_number}
    assert client.post("/api/publishers", json=payload, headers=auth_headers).status_code == 400


def test_publisher_requires_address(client, auth_headers):
    payload = {"name": "Penguin", "contactNumber": "5551234567"}
    assert client.post("/api/publishers", json=payload, headers=auth_headers).status_code == 400
