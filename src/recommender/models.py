"""Commerce entities read from the platform's data store.

These mirror the records the platform owns. The recommender only reads them
for the duration of one request.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

ORDER_STATUS_COMPLETED = "completed"
ORDER_STATUS_PROCESSING = "processing"


class Category(BaseModel):
    """Product category (taxonomy term)."""

    category_id: int = Field(..., description="Category identifier")
    slug: str = Field(..., description="URL-safe category slug")
    name: str = Field(default="", description="Display name")


class Product(BaseModel):
    """Catalog product with its display data and category memberships."""

    product_id: int = Field(..., description="Product identifier")
    name: str = Field(..., description="Display name")
    image: str = Field(default="", description="Thumbnail image URL")
    price: float = Field(default=0.0, ge=0, description="Current price")
    permalink: str = Field(default="", description="Product page URL")
    category_ids: List[int] = Field(
        default_factory=list, description="Categories the product belongs to"
    )
    published: bool = Field(default=True, description="Visible in the catalog")


class LineItem(BaseModel):
    """One line of an order.

    A ``product_id`` of 0 means the product was deleted after purchase.
    """

    product_id: int = Field(default=0, ge=0)
    quantity: int = Field(default=1, ge=1)


class Order(BaseModel):
    """Customer order with its line items and custom meta."""

    order_id: int
    customer_id: int
    status: str
    items: List[LineItem] = Field(default_factory=list)
    meta: Dict[str, str] = Field(default_factory=dict)
