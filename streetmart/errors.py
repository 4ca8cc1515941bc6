# streetmart/errors.py
"""
Error taxonomy for the order core.

Services raise these; `main` turns them into JSON responses carrying the
class status code. Store failures are wrapped as `TransientStoreError`.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError


class MarketplaceError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Missing or malformed input the caller can fix."""

    status_code = 400


class AuthorizationError(MarketplaceError):
    """Wrong role, or not the owner of the resource."""

    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404


class ConflictError(MarketplaceError):
    """The current state forbids the request; re-fetch before retrying."""

    status_code = 409


class TransientStoreError(MarketplaceError):
    """The store is unavailable or timed out. Safe to retry with backoff."""

    status_code = 503


class MaterialUnavailableError(ConflictError):
    def __init__(self, material_id: int, name: str | None = None):
        label = name or f"Material {material_id}"
        super().__init__(f"{label} is not available")
        self.material_id = material_id


class InsufficientStockError(ConflictError):
    def __init__(self, material_id: int, name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {name}. Available: {available}, requested: {requested}"
        )
        self.material_id = material_id
        self.available = available
        self.requested = requested


class IllegalTransitionError(ConflictError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot transition from {current} to {requested}")
        self.current = current
        self.requested = requested


class DuplicateReviewError(ConflictError):
    def __init__(self, order_id: int):
        super().__init__(f"Review already exists for order {order_id}")
        self.order_id = order_id


class OrderNotEligibleError(ValidationError):
    def __init__(self, order_id: int):
        super().__init__(
            f"Order {order_id} not found, unauthorized, or not delivered yet"
        )
        self.order_id = order_id


STORE_FAILURES = (OperationalError, PoolTimeoutError)


def transient_store_error(exc: Exception) -> TransientStoreError:
    return TransientStoreError(f"Store unavailable: {exc.__class__.__name__}")


@contextmanager
def store_errors() -> Iterator[None]:
    """Re-raise driver level store failures as TransientStoreError."""
    try:
        yield
    except STORE_FAILURES as e:
        raise transient_store_error(e) from e
