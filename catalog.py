"""
Catalog
=======

Book listings, the moderation workflow and search over approved books.

Moderation: every new listing starts as "pending"; an administrator moves it
to "approved" or "rejected", and both are final. Only approved books are
visible through get_books() and search_books().
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

import structlog

from database import BOOKS, Store, load_or_seed
from errors import InvalidPriceError
from recommender import BookRecommender
from schemas import Book, BookStatus
from seed import seed_books

logger = structlog.get_logger()


def round1(value) -> float:
    """Round half-up to one decimal place."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class Catalog:
    """Owns the books collection."""

    def __init__(self, store: Store, recommender: Optional[BookRecommender] = None):
        self._store = store
        self._recommender = recommender
        with self._store.lock(BOOKS):
            load_or_seed(self._store, BOOKS, seed_books)

    def _books(self) -> List[Book]:
        return [Book.model_validate(d) for d in load_or_seed(self._store, BOOKS, seed_books)]

    def _save(self, books: List[Book]) -> None:
        self._store.save(BOOKS, [b.model_dump(mode="json") for b in books])

    def add_book(
        self,
        title: str,
        author: str,
        price: float,
        seller_id: str,
        description: str = "",
        category: str = "",
        tags: Iterable[str] = (),
        isbn: str = "",
        cover_image: str = "",
        file_url: Optional[str] = None,
    ) -> Book:
        """
        List a new book for moderation.

        The book gets a fresh id, no rating, and status "pending".

        Raises:
            InvalidPriceError: price is missing, negative or NaN
        """
        if price is None or not price >= 0:
            raise InvalidPriceError(price)

        book = Book(
            title=title,
            author=author,
            description=description,
            price=price,
            isbn=isbn,
            category=category,
            cover_image=cover_image,
            seller_id=seller_id,
            tags=list(tags),
            file_url=file_url,
        )
        with self._store.lock(BOOKS):
            books = self._books()
            books.append(book)
            self._save(books)
        logger.info("book_added", book_id=book.id, seller_id=seller_id)
        return book

    def get_books(self) -> List[Book]:
        return [b for b in self._books() if b.status == "approved"]

    def get_pending_books(self) -> List[Book]:
        return [b for b in self._books() if b.status == "pending"]

    def get_seller_books(self, seller_id: str) -> List[Book]:
        return [b for b in self._books() if b.seller_id == seller_id]

    def get_book_by_id(self, book_id: str) -> Optional[Book]:
        return next((b for b in self._books() if b.id == book_id), None)

    def approve_book(self, book_id: str) -> None:
        self._moderate(book_id, "approved")

    def reject_book(self, book_id: str) -> None:
        self._moderate(book_id, "rejected")

    def _moderate(self, book_id: str, status: BookStatus) -> None:
        # Unknown ids and already-moderated books are left alone
        with self._store.lock(BOOKS):
            books = self._books()
            book = next((b for b in books if b.id == book_id), None)
            if book is None or book.status != "pending":
                return
            book.status = status
            self._save(books)
        logger.info("book_moderated", book_id=book_id, status=status)

    def delete_book(self, book_id: str) -> None:
        with self._store.lock(BOOKS):
            books = self._books()
            remaining = [b for b in books if b.id != book_id]
            if len(remaining) == len(books):
                return
            self._save(remaining)
        logger.info("book_deleted", book_id=book_id)

    def search_books(self, query: str) -> List[Book]:
        """
        Case-insensitive substring search over title, author, category and tags
        of approved books.

        Callers handle a blank query themselves by listing get_books(). When the
        direct search finds nothing, the recommender (if any) is asked for
        suggestions; only ids that resolve to approved books are kept.
        """
        approved = self.get_books()
        needle = query.lower()
        results = [
            b for b in approved
            if needle in b.title.lower()
            or needle in b.author.lower()
            or needle in b.category.lower()
            or any(needle in t.lower() for t in b.tags)
        ]
        if results or self._recommender is None:
            return results

        suggested = {r.book_id for r in self._recommender.recommend(query, approved)}
        matches = [b for b in approved if b.id in suggested]
        logger.info("search_fallback", query=query, suggested=len(suggested), matched=len(matches))
        return matches

    def apply_review_score(self, book_id: str, score: int) -> Optional[Book]:
        """
        Fold one new review score into the book's aggregate rating.

        review_count grows by one and rating becomes the mean of all scores,
        rounded to one decimal. Read, update and save happen under the books
        lock. Returns None without changes when the book no longer exists.
        """
        with self._store.lock(BOOKS):
            books = self._books()
            book = next((b for b in books if b.id == book_id), None)
            if book is None:
                return None
            # rating_total is the exact score sum; rating is its rounded mean,
            # whatever order the reviews arrived in.
            if book.rating_total is None:
                total = Decimal(str(book.rating)) * book.review_count
            else:
                total = Decimal(str(book.rating_total))
            total += score
            book.review_count += 1
            book.rating_total = float(total)
            book.rating = round1(total / book.review_count)
            self._save(books)
        return book
