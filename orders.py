"""
Order Ledger
============

Append-only purchase records created from a cart snapshot once payment
has succeeded. Orders never touch books or users.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import structlog
from jose import JWTError, jwt

from database import ORDERS, Store, load_or_seed
from errors import InvalidOrderTotalError
from schemas import CartItem, Order, new_id
from seed import seed_orders

logger = structlog.get_logger()

TOTAL_TOLERANCE = 0.005


class OrderLedger:
    """
    Owns the orders collection, stored most recent first.

    By default the caller-computed total is trusted as given. With
    verify_totals=True the total is recomputed from the line items and a
    mismatch raises InvalidOrderTotalError.
    """

    def __init__(self, store: Store, secret_key: str, algorithm: str = "HS256", verify_totals: bool = False):
        self._store = store
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._verify_totals = verify_totals
        with self._store.lock(ORDERS):
            load_or_seed(self._store, ORDERS, seed_orders)

    def _orders(self) -> List[Order]:
        return [Order.model_validate(d) for d in load_or_seed(self._store, ORDERS, seed_orders)]

    def _download_token(self, order_id: str, user_id: str) -> str:
        claims = {"sub": user_id, "order_id": order_id, "iat": int(datetime.now(timezone.utc).timestamp())}
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def create_order(self, user_id: str, items: Iterable[CartItem], total_amount: float,
                     payment_method: str = "card") -> Order:
        items = list(items)
        if self._verify_totals:
            expected = sum(item.price * item.quantity for item in items)
            if abs(expected - total_amount) > TOTAL_TOLERANCE:
                raise InvalidOrderTotalError(expected, total_amount)

        order_id = new_id()
        order = Order(
            id=order_id,
            user_id=user_id,
            items=items,
            total_amount=total_amount,
            payment_method=payment_method,
            download_token=self._download_token(order_id, user_id),
        )
        with self._store.lock(ORDERS):
            orders = self._orders()
            orders.insert(0, order)
            self._store.save(ORDERS, [o.model_dump(mode="json") for o in orders])
        logger.info("order_created", order_id=order.id, user_id=user_id,
                    items=len(items), total_amount=total_amount)
        return order

    def get_user_orders(self, user_id: str) -> List[Order]:
        """A user's orders, most recent first."""
        return [o for o in self._orders() if o.user_id == user_id]

    def get_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._orders() if o.id == order_id), None)

    def verify_download_token(self, order_id: str, token: str) -> Optional[Order]:
        """Return the order when the token was issued for it, else None."""
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            return None
        if claims.get("order_id") != order_id:
            return None
        order = self.get_order(order_id)
        if order is None or order.user_id != claims.get("sub"):
            return None
        return order
