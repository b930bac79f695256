import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# It is important to set environment variables before importing app modules
import os
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_SAMPLE_RATE"] = "0"

from recipe_hub import crud, models
from recipe_hub.db.session import Base, get_db
from recipe_hub.main import app

# One shared in-memory connection so every session sees the same tables
engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

API = "/api/v1"
DEFAULT_PASSWORD = "Password1!"


@pytest.fixture(scope="function")
def db() -> Generator:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db) -> Generator:
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a user directly in the database."""
    def _make_user(email, role=models.UserRole.USER, password=DEFAULT_PASSWORD, is_active=True,
                   first_name="Test", last_name="Cook"):
        user = crud.create_user(
            db, email=email, password=password, first_name=first_name, last_name=last_name, role=role
        )
        if not is_active:
            user.is_active = False
            db.commit()
            db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def login(client):
    """Log in through the API and return bearer headers."""
    def _login(email, password=DEFAULT_PASSWORD):
        response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["data"]["tokens"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}
    return _login


@pytest.fixture
def author(make_user):
    return make_user("author@example.com")


@pytest.fixture
def author_headers(author, login):
    return login(author.email)


@pytest.fixture
def other(make_user):
    return make_user("other@example.com")


@pytest.fixture
def other_headers(other, login):
    return login(other.email)


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role=models.UserRole.ADMIN)


@pytest.fixture
def admin_headers(admin, login):
    return login(admin.email)


@pytest.fixture
def category(db):
    db_category = models.Category(name="Italian Cuisine", slug="italian-cuisine", description="Pasta and more")
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@pytest.fixture
def recipe_payload(category):
    """Build a valid recipe create payload (camelCase wire format)."""
    def _payload(**overrides):
        payload = {
            "title": "Spaghetti Carbonara",
            "description": "Classic Roman pasta.",
            "instructions": "Cook pasta, mix with eggs and cheese.",
            "prepTimeMinutes": 10,
            "cookTimeMinutes": 15,
            "servings": 4,
            "difficulty": "medium",
            "categoryId": str(category.id),
            "tags": ["pasta", "quick"],
            "ingredients": [
                {"ingredientName": "Spaghetti", "quantity": 400, "unit": "grams"},
                {"ingredientName": "Eggs", "quantity": 3, "unit": "pieces"},
                {"ingredientName": "Pecorino", "quantity": 50, "unit": "grams", "preparation": "grated"},
            ],
            "steps": [
                {"title": "Boil", "instructions": "Boil the pasta in salted water."},
                {"title": "Mix", "instructions": "Whisk eggs with cheese."},
                {"title": "Combine", "instructions": "Toss pasta with the egg mixture off the heat."},
            ],
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def make_recipe(client, recipe_payload):
    """Create a recipe through the API and return its JSON data."""
    def _make_recipe(headers, **overrides):
        response = client.post(f"{API}/recipes/", json=recipe_payload(**overrides), headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make_recipe
