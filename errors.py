class DomainError(Exception):
    """Base class for bookstore errors surfaced to callers."""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


# --- Identity ---

class DuplicateEmailError(DomainError):
    """Raised when registering an email that already belongs to a user."""
    status_code = 409

    def __init__(self, email: str):
        super().__init__(f"Email '{email}' is already registered")


class UserNotFoundError(DomainError):
    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(f"User '{user_id}' not found")


class InvalidRoleError(DomainError):
    """Raised when a privileged account is requested with a non-privileged role."""
    status_code = 422

    def __init__(self, role: str):
        super().__init__(f"Role '{role}' cannot be provisioned by an administrator")


# --- Validation ---

class InvalidPriceError(DomainError):
    status_code = 422

    def __init__(self, price):
        super().__init__(f"Price must be zero or greater, got {price!r}")


class InvalidScoreError(DomainError):
    status_code = 422

    def __init__(self, score):
        super().__init__(f"Review score must be an integer from 1 to 5, got {score!r}")


class InvalidOrderTotalError(DomainError):
    """Raised only when order total verification is switched on."""
    status_code = 422

    def __init__(self, expected: float, given: float):
        super().__init__(f"Order total {given:.2f} does not match line items ({expected:.2f})")


# --- Persistence ---

class PersistenceFailure(DomainError):
    """Raised when a collection cannot be loaded from or saved to the store."""
    status_code = 503

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        super().__init__(f"Store operation on '{collection}' failed: {reason}")
