"""
Built-in datasets written to the store the first time a collection is missing.
"""
from typing import List

from schemas import Book, Review, User

SELLER_ID = "s1"
PLACEHOLDER_PDF = "https://www.w3.org/WAI/ER/tests/xhtml/testfiles/resources/pdf/dummy.pdf"


def seed_users() -> List[dict]:
    users = [
        User(
            id="u1",
            name="Alice Reader",
            email="alice@example.com",
            password="password123",
            role="reader",
            wallet_balance=100,
            avatar="https://picsum.photos/seed/alice/100/100",
        ),
        User(
            id=SELLER_ID,
            name="John Publisher",
            email="john@example.com",
            password="password123",
            role="seller",
            wallet_balance=500,
            avatar="https://picsum.photos/seed/john/100/100",
        ),
        User(
            id="a1",
            name="Alex Admin",
            email="alex@example.com",
            password="alex@123",
            role="admin",
            wallet_balance=0,
            avatar="https://picsum.photos/seed/admin/100/100",
        ),
    ]
    return [u.model_dump(mode="json") for u in users]


def seed_books() -> List[dict]:
    books = [
        Book(
            id="b1",
            title="The Future of AI",
            author="Dr. Sarah Connor",
            description="A deep dive into artificial intelligence and its impact on humanity. "
                        "Explores neural networks, machine learning, and the ethics of sentient code.",
            price=29.99,
            isbn="978-3-16-148410-0",
            category="Technology",
            cover_image="https://picsum.photos/seed/tech/400/600",
            seller_id=SELLER_ID,
            rating=5.0,
            review_count=1,
            rating_total=5,
            tags=["AI", "Tech", "Future"],
            status="approved",
            file_url=PLACEHOLDER_PDF,
        ),
        Book(
            id="b2",
            title="Mystery at the Manor",
            author="Arthur Doyle",
            description="A classic whodunit set in the rolling hills of England. "
                        "When the Duke is found dead, only one detective can solve the case.",
            price=14.99,
            isbn="978-1-40-289462-6",
            category="Mystery",
            cover_image="https://picsum.photos/seed/mystery/400/600",
            seller_id=SELLER_ID,
            tags=["Crime", "Thriller", "Classic"],
            status="approved",
            file_url=PLACEHOLDER_PDF,
        ),
        Book(
            id="b3",
            title="Cosmic Voyage",
            author="Neil Sagan",
            description="Journey through the stars in this illustrated guide to our universe. "
                        "From black holes to nebulas, experience the grandeur of space.",
            price=35.00,
            isbn="978-0-74-327356-5",
            category="Science",
            cover_image="https://picsum.photos/seed/space/400/600",
            seller_id=SELLER_ID,
            tags=["Space", "Science", "Astronomy"],
            status="approved",
            file_url=PLACEHOLDER_PDF,
        ),
    ]
    return [b.model_dump(mode="json") for b in books]


def seed_reviews() -> List[dict]:
    # matches b1's rating_total / review_count above
    review = Review(
        id="r1",
        book_id="b1",
        user_id="u1",
        user_name="Alice Reader",
        score=5,
        comment="Absolutely fascinating read! The chapters on neural networks were particularly enlightening.",
    )
    return [review.model_dump(mode="json")]


def seed_orders() -> List[dict]:
    return []
