"""
Composition root: one store handle injected into every component.

Construction order matters: store -> identity/catalog -> reviews (needs the
catalog for rating updates) -> orders.
"""
from dataclasses import dataclass
from typing import Optional

from catalog import Catalog
from config import Settings
from database import Store, get_store
from identity import IdentityRegistry
from orders import OrderLedger
from recommender import BookRecommender, GeminiRecommender, NullRecommender
from reviews import ReviewLedger


@dataclass
class Bookstore:
    store: Store
    identity: IdentityRegistry
    catalog: Catalog
    reviews: ReviewLedger
    orders: OrderLedger

    @classmethod
    def build(cls, store: Store, config: Settings, recommender: Optional[BookRecommender] = None) -> "Bookstore":
        if recommender is None:
            if config.GOOGLE_API_KEY:
                recommender = GeminiRecommender(config.GOOGLE_API_KEY, config.AI_MODEL_NAME)
            else:
                recommender = NullRecommender()

        catalog = Catalog(store, recommender)
        return cls(
            store=store,
            identity=IdentityRegistry(store),
            catalog=catalog,
            reviews=ReviewLedger(store, catalog),
            orders=OrderLedger(
                store,
                secret_key=config.SECRET_KEY,
                algorithm=config.ALGORITHM,
                verify_totals=config.VERIFY_ORDER_TOTALS,
            ),
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "Bookstore":
        return cls.build(get_store(config), config)
