import os
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel, EmailStr, Field

from config import settings
from errors import DomainError
from logging_config import configure_logging
from schemas import CartItem
from services import Bookstore

configure_logging()

# App and CORS
app = FastAPI(title="Bookstore API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

_bookstore: Optional[Bookstore] = None
_bookstore_lock = threading.Lock()


def get_bookstore() -> Bookstore:
    # every request must share one store handle, and with it one set of locks
    global _bookstore
    if _bookstore is None:
        with _bookstore_lock:
            if _bookstore is None:
                _bookstore = Bookstore.from_settings(settings)
    return _bookstore


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

# Helpers

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme), store: Bookstore = Depends(get_bookstore)):
    credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    user = store.identity.get_user(user_id)
    if not user:
        raise credentials_exception
    return user


def require_role(*roles: str):
    def role_dep(current_user=Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return current_user
    return role_dep

# Request/Response Models
class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)
    email: EmailStr
    password: str = Field(..., min_length=1)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Dict[str, Any]

class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: str = "seller"

class CreateBookRequest(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    description: str = ""
    price: float
    isbn: str = ""
    category: str = ""
    cover_image: str = ""
    tags: List[str] = []
    file_url: Optional[str] = None

class ReviewRequest(BaseModel):
    score: int
    comment: str = ""

class CheckoutRequest(BaseModel):
    items: List[CartItem] = Field(..., min_length=1)
    total_amount: float
    payment_method: str = "card"

# Auth Routes
@app.post("/auth/signup", response_model=TokenResponse)
def signup(payload: SignupRequest, store: Bookstore = Depends(get_bookstore)):
    user = store.identity.register(payload.name, payload.email, payload.password)
    token = create_access_token({"sub": user.id})
    return TokenResponse(access_token=token, user=user.public())

@app.post("/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, store: Bookstore = Depends(get_bookstore)):
    user = store.identity.login(payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = create_access_token({"sub": user.id})
    return TokenResponse(access_token=token, user=user.public())

@app.get("/me")
def me(current_user=Depends(get_current_user)):
    return current_user.public()

# Wishlist
@app.get("/me/wishlist")
def my_wishlist(current_user=Depends(get_current_user), store: Bookstore = Depends(get_bookstore)):
    # membership is oldest first; show recently added first
    books = [store.catalog.get_book_by_id(book_id) for book_id in reversed(current_user.wishlist)]
    return [b for b in books if b is not None]

@app.post("/me/wishlist/{book_id}")
def toggle_wishlist(book_id: str, current_user=Depends(get_current_user), store: Bookstore = Depends(get_bookstore)):
    return {"wishlist": store.identity.toggle_wishlist(current_user.id, book_id)}

# Catalog
@app.get("/books")
def list_books(q: Optional[str] = None, store: Bookstore = Depends(get_bookstore)):
    if not q or not q.strip():
        return store.catalog.get_books()
    return store.catalog.search_books(q.strip())

@app.get("/books/{book_id}")
def get_book(book_id: str, store: Bookstore = Depends(get_bookstore)):
    book = store.catalog.get_book_by_id(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book

@app.post("/books", status_code=201)
def create_book(
    payload: CreateBookRequest,
    seller=Depends(require_role("seller", "admin")),
    store: Bookstore = Depends(get_bookstore),
):
    return store.catalog.add_book(seller_id=seller.id, **payload.model_dump())

@app.get("/seller/books")
def seller_books(seller=Depends(require_role("seller")), store: Bookstore = Depends(get_bookstore)):
    return store.catalog.get_seller_books(seller.id)

# Reviews
@app.get("/books/{book_id}/reviews")
def list_reviews(book_id: str, store: Bookstore = Depends(get_bookstore)):
    return store.reviews.get_reviews(book_id)

@app.post("/books/{book_id}/reviews", status_code=201)
def add_review(
    book_id: str,
    payload: ReviewRequest,
    current_user=Depends(get_current_user),
    store: Bookstore = Depends(get_bookstore),
):
    return store.reviews.add_review(book_id, current_user.id, current_user.name, payload.score, payload.comment)

# Orders
@app.post("/orders", status_code=201)
def checkout(payload: CheckoutRequest, current_user=Depends(get_current_user), store: Bookstore = Depends(get_bookstore)):
    # reached only after the payment step reported success
    return store.orders.create_order(current_user.id, payload.items, payload.total_amount, payload.payment_method)

@app.get("/orders")
def my_orders(current_user=Depends(get_current_user), store: Bookstore = Depends(get_bookstore)):
    return store.orders.get_user_orders(current_user.id)

@app.get("/orders/{order_id}/download")
def download_order(order_id: str, token: str, store: Bookstore = Depends(get_bookstore)):
    order = store.orders.verify_download_token(order_id, token)
    if not order:
        raise HTTPException(status_code=403, detail="Invalid download token")
    return {
        "order_id": order.id,
        "files": [{"book_id": item.id, "title": item.title, "file_url": item.file_url} for item in order.items],
    }

# Admin Routes
@app.get("/admin/dashboard")
def admin_dashboard(admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    return {
        "total_users": len(store.identity.list_users()),
        "total_books": len(store.catalog.get_books()),
        "pending_books": len(store.catalog.get_pending_books()),
    }

@app.get("/admin/users")
def admin_list_users(admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    return [u.public() for u in store.identity.list_users()]

@app.post("/admin/users", status_code=201)
def admin_create_user(payload: CreateUserRequest, admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    user = store.identity.create_privileged_account(payload.name, payload.email, payload.password, payload.role)
    return user.public()

@app.delete("/admin/users/{user_id}", status_code=204)
def admin_delete_user(user_id: str, admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    store.identity.delete_user(user_id)

@app.get("/admin/books/pending")
def admin_pending_books(admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    return store.catalog.get_pending_books()

@app.post("/admin/books/{book_id}/approve")
def admin_approve_book(book_id: str, admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    store.catalog.approve_book(book_id)
    return {"message": "Book approved"}

@app.post("/admin/books/{book_id}/reject")
def admin_reject_book(book_id: str, admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    store.catalog.reject_book(book_id)
    return {"message": "Book rejected"}

@app.delete("/admin/books/{book_id}", status_code=204)
def admin_delete_book(book_id: str, admin=Depends(require_role("admin")), store: Bookstore = Depends(get_bookstore)):
    store.catalog.delete_book(book_id)

# Utility endpoints
@app.get("/")
def root():
    return {"message": "Bookstore API running"}

@app.get("/test")
def store_health(store: Bookstore = Depends(get_bookstore)):
    return {"backend": "ok", "store": "ok" if store.store.ping() else "error"}


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
