from fastapi import HTTPException, status
from typing import Any, List, Optional


class EmailAlreadyExists(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )


class InvalidCredentials(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )


class ProductNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )


class InsufficientStock(HTTPException):
    def __init__(self, available: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock. Only {available} items available"
        )


class CouponNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Coupon not found"
        )


class APIError(Exception):
    def __init__(self, status_code: int, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class CouponValidationError(APIError):
    """Operator input that would break a coupon invariant. Nothing is saved."""

    def __init__(self, field: str, message: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            errors=[{"field": field, "message": message}],
        )
        self.field = field


class CouponPersistenceError(APIError):
    """The store rejected a coupon write; the store's message is kept as-is."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            message=message,
            errors=[{"detail": message}],
        )


class DeletionNotConfirmed(APIError):
    def __init__(self, resource: str = "coupon"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=f"Deleting a {resource} must be confirmed",
            errors=[{"field": "confirm", "message": "Pass confirm=true to delete"}],
        )
