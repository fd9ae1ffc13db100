"""
Review Ledger
=============

Per-book reviews. Each accepted review is folded into the book's aggregate
rating through Catalog.apply_review_score.
"""
from typing import List

import structlog

from catalog import Catalog
from database import REVIEWS, Store, load_or_seed
from errors import InvalidScoreError
from schemas import Review
from seed import seed_reviews

logger = structlog.get_logger()


class ReviewLedger:

    def __init__(self, store: Store, catalog: Catalog):
        self._store = store
        self._catalog = catalog
        with self._store.lock(REVIEWS):
            load_or_seed(self._store, REVIEWS, seed_reviews)

    def _reviews(self) -> List[Review]:
        return [Review.model_validate(d) for d in load_or_seed(self._store, REVIEWS, seed_reviews)]

    def get_reviews(self, book_id: str) -> List[Review]:
        """Reviews for one book, newest first."""
        matching = [(i, r) for i, r in enumerate(self._reviews()) if r.book_id == book_id]
        matching.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [r for _, r in matching]

    def add_review(self, book_id: str, user_id: str, user_name: str, score: int, comment: str) -> Review:
        """
        Record a review and update the book's rating.

        The review is kept even when the book has since been deleted; the
        rating update is then skipped.

        Raises:
            InvalidScoreError: score is not an integer from 1 to 5
        """
        if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
            raise InvalidScoreError(score)

        review = Review(book_id=book_id, user_id=user_id, user_name=user_name, score=score, comment=comment)
        # reviews lock is held across the rating update so counts never drift
        with self._store.lock(REVIEWS):
            reviews = self._reviews()
            reviews.append(review)
            self._store.save(REVIEWS, [r.model_dump(mode="json") for r in reviews])
            book = self._catalog.apply_review_score(book_id, score)

        if book is None:
            logger.warning("rating_update_skipped", book_id=book_id, review_id=review.id)
        else:
            logger.info("review_added", book_id=book_id, review_id=review.id,
                        rating=book.rating, review_count=book.review_count)
        return review
