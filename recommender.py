"""
Search fallback recommender.

An advisory collaborator: given a free-text query and the approved books it
may suggest some of them. Never required for correctness; every failure
degrades to "no suggestions".
"""
import json
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import google.generativeai as genai
import structlog

from schemas import Book, Recommendation

logger = structlog.get_logger()

MAX_SUGGESTIONS = 3


class BookRecommender(ABC):

    @abstractmethod
    def recommend(self, query: str, books: Sequence[Book]) -> List[Recommendation]:
        """Return suggestions whose book_id is one of the given books."""
        pass


class NullRecommender(BookRecommender):
    """Used when no AI key is configured."""

    def recommend(self, query: str, books: Sequence[Book]) -> List[Recommendation]:
        return []


class GeminiRecommender(BookRecommender):
    """Asks Google Gemini to pick matching books from the approved list."""

    def __init__(self, api_key: Optional[str] = None, model_name: str = "gemini-1.5-flash", model=None):
        self.model = model
        if self.model is None and api_key:
            try:
                genai.configure(api_key=api_key)
                self.model = genai.GenerativeModel(model_name)
            except Exception as e:
                logger.error("llm_config_failed", error=str(e))
                self.model = None
        if self.model is None:
            logger.warning("llm_init_skipped", msg="No Google API key; search fallback disabled.")

    def _prompt(self, query: str, books: Sequence[Book]) -> str:
        context = "\n".join(
            f"ID: {b.id}, Title: {b.title}, Author: {b.author}, Category: {b.category}" for b in books
        )
        return (
            f'Based on the user\'s request: "{query}", recommend up to {MAX_SUGGESTIONS} books '
            "from the following list. Only select books that truly match.\n\n"
            f"List of Available Books:\n{context}\n\n"
            'Return JSON: {"recommendations": [{"bookId": "...", "reason": "..."}]}'
        )

    def recommend(self, query: str, books: Sequence[Book]) -> List[Recommendation]:
        if not self.model or not books:
            return []

        try:
            response = self.model.generate_content(
                self._prompt(query, books),
                generation_config={"response_mime_type": "application/json"},
            )
            payload = json.loads(response.text)
        except Exception as e:
            logger.warning("recommendation_failed", query=query, error=str(e))
            return []

        items = payload.get("recommendations", []) if isinstance(payload, dict) else []
        known = {b.id for b in books}
        suggestions = []
        for item in items:
            if not isinstance(item, dict):
                continue
            book_id = item.get("bookId")
            if book_id in known:
                suggestions.append(Recommendation(book_id=book_id, reason=str(item.get("reason", ""))))
        return suggestions[:MAX_SUGGESTIONS]
