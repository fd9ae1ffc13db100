"""
Identity Registry
=================

User records, credential check, role assignment and wishlist membership.
"""
from typing import List, Optional

import structlog

from database import USERS, Store, load_or_seed
from errors import DuplicateEmailError, InvalidRoleError, UserNotFoundError
from schemas import Role, User
from seed import seed_users

logger = structlog.get_logger()

PRIVILEGED_ROLES = ("seller", "admin")


class IdentityRegistry:
    """Owns the users collection."""

    def __init__(self, store: Store):
        self._store = store
        with self._store.lock(USERS):
            load_or_seed(self._store, USERS, seed_users)

    def _users(self) -> List[User]:
        return [User.model_validate(d) for d in load_or_seed(self._store, USERS, seed_users)]

    def _save(self, users: List[User]) -> None:
        self._store.save(USERS, [u.model_dump(mode="json") for u in users])

    def login(self, email: str, password: str) -> Optional[User]:
        """Exact match on email and credential; None on mismatch."""
        for user in self._users():
            if user.email == email and user.password == password:
                return user
        return None

    def register(self, name: str, email: str, password: str) -> User:
        """Self-service sign-up. Always creates a reader."""
        return self._create(name, email, password, "reader")

    def create_privileged_account(self, name: str, email: str, password: str, role: Role = "seller") -> User:
        """
        Provision a seller (or admin) account on behalf of an administrator.

        Raises:
            InvalidRoleError: role is not seller or admin
            DuplicateEmailError: email already registered
        """
        if role not in PRIVILEGED_ROLES:
            raise InvalidRoleError(role)
        return self._create(name, email, password, role)

    def _create(self, name: str, email: str, password: str, role: Role) -> User:
        with self._store.lock(USERS):
            users = self._users()
            if any(u.email == email for u in users):
                raise DuplicateEmailError(email)
            user = User(
                name=name,
                email=email,
                password=password,
                role=role,
                avatar=f"https://picsum.photos/seed/{name}/100/100",
            )
            users.append(user)
            self._save(users)
        logger.info("user_created", user_id=user.id, role=role)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self._users():
            if user.id == user_id:
                return user
        return None

    def list_users(self) -> List[User]:
        return self._users()

    def delete_user(self, user_id: str) -> None:
        """Remove a user. Unknown ids are ignored; orders and reviews are kept."""
        with self._store.lock(USERS):
            users = self._users()
            remaining = [u for u in users if u.id != user_id]
            if len(remaining) == len(users):
                return
            self._save(remaining)
        logger.info("user_deleted", user_id=user_id)

    def toggle_wishlist(self, user_id: str, book_id: str) -> List[str]:
        """
        Add the book to the end of the user's wishlist, or remove its first
        occurrence when already present.

        Returns:
            Updated wishlist, oldest first. Reverse it for recently-added-first display.

        Raises:
            UserNotFoundError: unknown user id
        """
        with self._store.lock(USERS):
            users = self._users()
            user = next((u for u in users if u.id == user_id), None)
            if user is None:
                raise UserNotFoundError(user_id)
            if book_id in user.wishlist:
                user.wishlist.remove(book_id)
            else:
                user.wishlist.append(book_id)
            self._save(users)
            return list(user.wishlist)
