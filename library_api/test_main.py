from library_api.config import settings
from library_api.dependencies import get_author_service
from library_api.main import app
from library_api.rate_limiter import limiter


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Healthy"
    assert {check["name"] for check in body["checks"]} == {"database", "self"}
    assert all(check["status"] == "Healthy" for check in body["checks"])
    assert isinstance(body["totalDuration"], str)


def test_unhandled_error_returns_generic_500(client):
    class BrokenService:
        def get_all(self):
            raise RuntimeError("connection string leaked here")

    app.dependency_overrides[get_author_service] = lambda: BrokenService()
    response = client.get("/api/authors")
    assert response.status_code == 500
    assert response.json() == {"detail": "An unexpected error occurred."}
    assert "leaked" not in response.text


def test_malformed_body_is_bad_request(client, auth_headers):
    response = client.post("/api/authors", json={"name": ""}, headers=auth_headers)
    assert response.status_code == 400


def test_responses_use_camel_case(client):
    response = client.get("/api/books/1")
    assert response.status_code == 200
    body = response.json()
    assert body["authorName"] == "J.K. Rowling"
    assert body["publisherContactNumber"] == "123456789"
    assert "author_name" not in body


def test_rate_limit_rejects_excess_requests(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT", "2/minute")
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        codes = [client.get("/api/authors").status_code for _ in range(3)]
    finally:
        limiter.reset()
    assert codes == [200, 200, 429]


def test_rate_limit_counts_each_user_separately(client, auth_headers, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT", "1/minute")
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        assert client.get("/api/categories", headers=auth_headers).status_code == 200
        assert client.get("/api/categories", headers=admin_headers).status_code == 200
        assert client.get("/api/categories", headers=auth_headers).status_code == 429
    finally:
        limiter.reset()
