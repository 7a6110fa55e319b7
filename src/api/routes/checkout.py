"""Checkout endpoints for the CheckoutRec API.

The web layer calls these while rendering and submitting the checkout page:
to get the cart-conditioned fields, to save their values on the order and to
fetch everything the page needs in one call.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.dependencies import get_extensions, get_optional_extensions
from src.checkout.fields import CheckoutField
from src.checkout.hooks import CheckoutExtensions, RecommendationBlock

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/checkout",
    tags=["checkout"],
)


class FieldsRequest(BaseModel):
    """Cart contents and the fields the form already has."""

    cart: List[int] = Field(default_factory=list, description="Product IDs in the cart")
    fields: List[CheckoutField] = Field(
        default_factory=list, description="Base checkout fields"
    )


class FieldsResponse(BaseModel):
    fields: List[CheckoutField]


class SaveFieldsRequest(BaseModel):
    """Submitted checkout form values for an order."""

    cart: List[int] = Field(default_factory=list, description="Product IDs in the cart")
    values: Dict[str, str] = Field(default_factory=dict, description="Posted form values")


class SaveFieldsResponse(BaseModel):
    order_id: int
    saved: Dict[str, str]


class PageRequest(BaseModel):
    """Checkout page context; user_id is null for guests."""

    user_id: Optional[int] = None
    cart: List[int] = Field(default_factory=list)
    fields: List[CheckoutField] = Field(default_factory=list)


class PageResponse(BaseModel):
    recommendations: Optional[RecommendationBlock] = None
    fields: List[CheckoutField]


@router.post("/fields", response_model=FieldsResponse)
def checkout_fields(
    request: FieldsRequest,
    extensions: CheckoutExtensions = Depends(get_extensions),
) -> FieldsResponse:
    """Return the checkout fields for the cart."""
    return FieldsResponse(fields=extensions.checkout_fields(request.fields, request.cart))


@router.post("/orders/{order_id}/fields", response_model=SaveFieldsResponse)
def save_checkout_fields(
    order_id: int,
    request: SaveFieldsRequest,
    extensions: CheckoutExtensions = Depends(get_extensions),
) -> SaveFieldsResponse:
    """Save the custom field values to the order's meta.

    Raises:
        InvalidCheckoutFieldError: If a value is rejected (422).
        OrderNotFoundError: If the order does not exist (404).
    """
    logger.info(f"Saving checkout fields for order {order_id}")
    saved = extensions.update_order_meta(order_id, request.values, request.cart)
    return SaveFieldsResponse(order_id=order_id, saved=saved)


@router.post("/page", response_model=PageResponse)
def checkout_page(
    request: PageRequest,
    extensions: Optional[CheckoutExtensions] = Depends(get_optional_extensions),
) -> PageResponse:
    """Return the recommendation block and the fields for the checkout page.

    Without a store the page still renders with its base fields.
    """
    if extensions is None:
        return PageResponse(recommendations=None, fields=request.fields)

    return PageResponse(
        recommendations=extensions.before_customer_details(request.user_id),
        fields=extensions.checkout_fields(request.fields, request.cart),
    )
