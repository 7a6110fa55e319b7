"""Custom exceptions for the CheckoutRec service.

Defines specific exception types for the commerce store collaborator, the
checkout field feature and the recommender, each carrying the HTTP status
code the API responds with.
"""

from typing import Any, Dict, Optional


class CheckoutRecException(Exception):
    """Base exception for CheckoutRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class StoreUnavailableError(CheckoutRecException):
    """Raised when the commerce store cannot answer a query."""

    def __init__(self, operation: str, error: Optional[Exception] = None):
        message = f"Commerce store unavailable during '{operation}'"
        details: Dict[str, Any] = {"operation": operation}
        if error is not None:
            message = f"{message}: {error}"
            details["error"] = str(error)
            details["error_type"] = type(error).__name__
        super().__init__(message=message, status_code=503, details=details)


class ProductNotFoundError(CheckoutRecException):
    """Raised when a product is missing from the catalog."""

    def __init__(self, product_id: int):
        super().__init__(
            message=f"Product {product_id} not found in catalog",
            status_code=404,
            details={"product_id": product_id},
        )


class OrderNotFoundError(CheckoutRecException):
    """Raised when an order does not exist."""

    def __init__(self, order_id: int):
        super().__init__(
            message=f"Order {order_id} not found",
            status_code=404,
            details={"order_id": order_id},
        )


class InvalidCheckoutFieldError(CheckoutRecException):
    """Raised when a submitted checkout field value is rejected."""

    def __init__(self, field_key: str, reason: str, value: Optional[str] = None):
        super().__init__(
            message=f"Invalid value for checkout field '{field_key}': {reason}",
            status_code=422,
            details={"field_key": field_key, "reason": reason, "value": value},
        )


class RecommendationError(CheckoutRecException):
    """Raised when recommendation generation fails."""

    def __init__(self, user_id: int, error: Exception):
        message = f"Failed to generate recommendations for user {user_id}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "user_id": user_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
