"""
Record Schemas for the Bookstore

Each Pydantic model is one record kind held in a named store collection:
- users: readers, sellers and admins
- books: catalog listings and their moderation status
- reviews: per-book reader reviews
- orders: completed purchases

Records are saved with model_dump(mode="json") and loaded back with
model_validate, so every field must stay JSON-serializable.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, Field

Role = Literal["reader", "seller", "admin"]
BookStatus = Literal["pending", "approved", "rejected"]


def new_id() -> str:
    return str(ObjectId())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., description="Plain credential; hashing is not done at this layer")
    role: Role = Field("reader")
    avatar: Optional[str] = None
    wallet_balance: float = 0.0
    wishlist: List[str] = Field(default_factory=list, description="Book ids, oldest first")

    def public(self) -> dict:
        return self.model_dump(mode="json", exclude={"password"})


class Book(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    author: str
    description: str = ""
    price: float = Field(..., ge=0, description="Price in USD")
    isbn: str = ""
    category: str = ""
    cover_image: str = ""
    seller_id: str = Field(..., description="Reference to the owning seller's user id")
    rating: float = Field(0.0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    rating_total: Optional[float] = Field(None, description="Sum of all review scores")
    tags: List[str] = Field(default_factory=list)
    status: BookStatus = "pending"
    added_at: datetime = Field(default_factory=utcnow)
    file_url: Optional[str] = Field(None, description="Opaque reference to the book's content")


class Review(BaseModel):
    id: str = Field(default_factory=new_id)
    book_id: str
    user_id: str
    user_name: str
    score: int = Field(..., ge=1, le=5)
    comment: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class CartItem(Book):
    """A book snapshot taken at checkout time plus the purchased quantity."""
    quantity: int = Field(1, ge=1)


class Order(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    items: List[CartItem]
    total_amount: float
    created_at: datetime = Field(default_factory=utcnow)
    status: Literal["completed"] = "completed"
    payment_method: str = "card"
    download_token: Optional[str] = None


class Recommendation(BaseModel):
    book_id: str
    reason: str = ""
