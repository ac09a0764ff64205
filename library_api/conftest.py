import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("JWT_ISSUER", "library-api-tests")
os.environ.setdefault("JWT_AUDIENCE", "library-api-clients")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_DATA"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from library_api.database import Base, _build_engine, get_db
from library_api.main import app
from library_api.seed import seed_database

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin@123"
USER_PASSWORD = "Passw0rd!"

# Create engine globally for the test session
engine = _build_engine("sqlite://")
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as db:
        seed_database(db)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register(client, user_name="alice", email="alice@example.com", password=USER_PASSWORD, role=None):
    payload = {"userName": user_name, "email": email, "fullName": "Alice Reader", "password": password}
    if role is not None:
        payload["role"] = role
    return client.post("/api/auth/register", json=payload)


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
def user_tokens(client):
    response = register(client)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def auth_headers(user_tokens):
    return {"Authorization": f"Bearer {user_tokens['token']}"}


@pytest.fixture
def admin_headers(client):
    response = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
