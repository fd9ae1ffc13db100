# tests/test_api.py
import threading
import time
from types import SimpleNamespace

import database
import main
from .conftest import auth_header


def test_root_and_store_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/test").json() == {"backend": "ok", "store": "ok"}


def test_signup_login_and_me(client):
    resp = client.post("/auth/signup", json={"name": "Bob", "email": "bob@example.com", "password": "pw"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["role"] == "reader"
    assert "password" not in body["user"]

    headers = auth_header(client, "bob@example.com", "pw")
    me = client.get("/me", headers=headers).json()
    assert me["email"] == "bob@example.com"


def test_signup_duplicate_email_conflicts(client):
    resp = client.post("/auth/signup", json={"name": "Alice", "email": "alice@example.com", "password": "x"})
    assert resp.status_code == 409


def test_login_mismatch_is_unauthorized(client):
    resp = client.post("/auth/login", json={"email": "alice@example.com", "password": "nope"})
    assert resp.status_code == 401


def test_protected_routes_need_a_token(client):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_blank_query_lists_all_books(client):
    assert len(client.get("/books").json()) == 3
    assert len(client.get("/books", params={"q": "   "}).json()) == 3
    assert [b["id"] for b in client.get("/books", params={"q": "mystery"}).json()] == ["b2"]


def test_get_book_not_found(client):
    assert client.get("/books/b1").json()["title"] == "The Future of AI"
    assert client.get("/books/missing").status_code == 404


def test_listing_and_moderation_flow(client, seller_headers, admin_headers, reader_headers):
    resp = client.post("/books", headers=seller_headers, json={
        "title": "Gardens of Tomorrow", "author": "Ada Green", "price": 19.99, "tags": ["Plants"],
    })
    assert resp.status_code == 201
    book = resp.json()
    assert book["status"] == "pending"
    assert book["seller_id"] == "s1"

    assert client.post("/books", headers=reader_headers, json={
        "title": "X", "author": "Y", "price": 1,
    }).status_code == 403
    assert client.post("/books", headers=seller_headers, json={
        "title": "X", "author": "Y", "price": -3,
    }).status_code == 422

    pending = client.get("/admin/books/pending", headers=admin_headers).json()
    assert [b["id"] for b in pending] == [book["id"]]
    assert client.get("/admin/books/pending", headers=seller_headers).status_code == 403

    assert client.post(f"/admin/books/{book['id']}/approve", headers=admin_headers).status_code == 200
    assert client.post(f"/admin/books/{book['id']}/reject", headers=admin_headers).status_code == 200
    assert client.get(f"/books/{book['id']}").json()["status"] == "approved"
    assert book["id"] in [b["id"] for b in client.get("/books").json()]
    assert book["id"] in [b["id"] for b in client.get("/seller/books", headers=seller_headers).json()]


def test_moderating_unknown_book_succeeds_quietly(client, admin_headers):
    assert client.post("/admin/books/missing/approve", headers=admin_headers).status_code == 200
    assert client.delete("/admin/books/missing", headers=admin_headers).status_code == 204


def test_reviews_update_rating(client, reader_headers):
    resp = client.post("/books/b2/reviews", headers=reader_headers, json={"score": 4, "comment": "good"})
    assert resp.status_code == 201
    assert resp.json()["user_name"] == "Alice Reader"
    client.post("/books/b2/reviews", headers=reader_headers, json={"score": 5, "comment": "great"})

    book = client.get("/books/b2").json()
    assert (book["rating"], book["review_count"]) == (4.5, 2)
    assert [r["comment"] for r in client.get("/books/b2/reviews").json()] == ["great", "good"]


def test_invalid_review_score(client, reader_headers):
    resp = client.post("/books/b2/reviews", headers=reader_headers, json={"score": 9})
    assert resp.status_code == 422
    assert client.get("/books/b2").json()["review_count"] == 0


def test_wishlist_is_shown_recent_first(client, reader_headers):
    client.post("/me/wishlist/b1", headers=reader_headers)
    resp = client.post("/me/wishlist/b3", headers=reader_headers)
    assert resp.json() == {"wishlist": ["b1", "b3"]}
    assert [b["id"] for b in client.get("/me/wishlist", headers=reader_headers).json()] == ["b3", "b1"]
    client.post("/me/wishlist/b1", headers=reader_headers)
    assert [b["id"] for b in client.get("/me/wishlist", headers=reader_headers).json()] == ["b3"]


def test_checkout_history_and_download(client, reader_headers):
    book = client.get("/books/b1").json()
    resp = client.post("/orders", headers=reader_headers, json={
        "items": [{**book, "quantity": 2}],
        "total_amount": 59.98,
    })
    assert resp.status_code == 201
    order = resp.json()
    assert order["status"] == "completed"

    history = client.get("/orders", headers=reader_headers).json()
    assert [o["id"] for o in history] == [order["id"]]

    download = client.get(f"/orders/{order['id']}/download", params={"token": order["download_token"]})
    assert download.status_code == 200
    assert download.json()["files"][0]["book_id"] == "b1"
    bad = client.get(f"/orders/{order['id']}/download", params={"token": "forged"})
    assert bad.status_code == 403


def test_checkout_trusts_caller_total(client, reader_headers):
    book = client.get("/books/b1").json()
    resp = client.post("/orders", headers=reader_headers, json={
        "items": [{**book, "quantity": 1}],
        "total_amount": 0.01,
    })
    assert resp.status_code == 201
    assert resp.json()["total_amount"] == 0.01


def test_admin_user_management(client, admin_headers, reader_headers):
    resp = client.post("/admin/users", headers=admin_headers, json={
        "name": "Pat Press", "email": "pat@example.com", "password": "pw",
    })
    assert resp.status_code == 201
    seller = resp.json()
    assert seller["role"] == "seller"

    assert client.post("/admin/users", headers=admin_headers, json={
        "name": "R", "email": "r@example.com", "password": "pw", "role": "reader",
    }).status_code == 422
    assert client.post("/admin/users", headers=reader_headers, json={
        "name": "R", "email": "r@example.com", "password": "pw",
    }).status_code == 403

    users = client.get("/admin/users", headers=admin_headers).json()
    assert seller["id"] in [u["id"] for u in users]
    assert all("password" not in u for u in users)

    assert client.delete(f"/admin/users/{seller['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/admin/users/{seller['id']}", headers=admin_headers).status_code == 204
    dashboard = client.get("/admin/dashboard", headers=admin_headers).json()
    assert dashboard == {"total_users": 3, "total_books": 3, "pending_books": 0}


def test_store_failure_maps_to_service_unavailable(client, seller_headers, bookstore, monkeypatch):
    before = [b.id for b in bookstore.catalog.get_seller_books("s1")]

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(database.os, "replace", broken_replace)
    resp = client.post("/books", headers=seller_headers, json={
        "title": "Lost Pages", "author": "Ink Spill", "price": 4.5,
    })
    monkeypatch.undo()

    assert resp.status_code == 503
    assert "books" in resp.json()["detail"]
    assert [b.id for b in bookstore.catalog.get_seller_books("s1")] == before


def test_concurrent_first_requests_share_one_bookstore(monkeypatch):
    calls = []

    def slow_from_settings(config):
        calls.append(config)
        time.sleep(0.2)
        return SimpleNamespace(store=object())

    monkeypatch.setattr(main, "_bookstore", None)
    monkeypatch.setattr(main, "Bookstore", SimpleNamespace(from_settings=slow_from_settings))

    seen = []
    start = threading.Barrier(4)

    def first_request():
        start.wait()
        seen.append(main.get_bookstore())

    threads = [threading.Thread(target=first_request) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len({id(b.store) for b in seen}) == 1
