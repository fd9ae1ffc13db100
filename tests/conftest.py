# tests/conftest.py
from typing import List, Sequence

import pytest
from fastapi.testclient import TestClient

from catalog import Catalog
from config import Settings
from database import JsonFileStore
from identity import IdentityRegistry
from orders import OrderLedger
from recommender import BookRecommender
from reviews import ReviewLedger
from schemas import Book, Recommendation
from services import Bookstore

SECRET = "test-secret"


class FakeRecommender(BookRecommender):
    """Returns canned suggestions and remembers what it was asked."""

    def __init__(self, book_ids: Sequence[str] = ()):
        self.book_ids = list(book_ids)
        self.calls: List[str] = []

    def recommend(self, query: str, books: Sequence[Book]) -> List[Recommendation]:
        self.calls.append(query)
        return [Recommendation(book_id=book_id, reason="fake") for book_id in self.book_ids]


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(str(tmp_path / "data"))


@pytest.fixture
def recommender():
    return FakeRecommender()


@pytest.fixture
def registry(store):
    return IdentityRegistry(store)


@pytest.fixture
def catalog(store, recommender):
    return Catalog(store, recommender)


@pytest.fixture
def reviews(store, catalog):
    return ReviewLedger(store, catalog)


@pytest.fixture
def orders(store):
    return OrderLedger(store, secret_key=SECRET)


@pytest.fixture
def pending_book(catalog):
    return catalog.add_book(
        title="Gardens of Tomorrow",
        author="Ada Green",
        price=19.99,
        seller_id="s1",
        category="Nature",
        tags=["Plants", "Climate"],
    )


@pytest.fixture
def bookstore(store, recommender):
    config = Settings(SECRET_KEY=SECRET, _env_file=None)
    return Bookstore.build(store, config, recommender=recommender)


@pytest.fixture
def client(bookstore):
    import main

    main.app.dependency_overrides[main.get_bookstore] = lambda: bookstore
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def auth_header(client, email, password):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def reader_headers(client):
    return auth_header(client, "alice@example.com", "password123")


@pytest.fixture
def seller_headers(client):
    return auth_header(client, "john@example.com", "password123")


@pytest.fixture
def admin_headers(client):
    return auth_header(client, "alex@example.com", "alex@123")
