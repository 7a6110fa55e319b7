"""Checkout extension points.

The web layer calls these at fixed points of the checkout page lifecycle:
before the customer details are rendered, when the form fields are built and
when the order meta is saved.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from src.api.exceptions import CheckoutRecException, ProductNotFoundError
from src.api.metrics import metrics_service
from src.checkout.fields import (
    CheckoutField,
    FieldRule,
    customize_checkout_fields,
    default_field_rules,
    save_custom_checkout_fields,
)
from src.recommender.affinity import recommend
from src.recommender.store import CommerceStore

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_BLOCK_TITLE = "You Might Also Like"

Recommender = Callable[[int, CommerceStore], List[int]]


class RecommendedProduct(BaseModel):
    """Display data for one recommended product."""

    product_id: int
    name: str
    image: str = ""
    price: float = 0.0
    permalink: str = ""


class RecommendationBlock(BaseModel):
    """The "You Might Also Like" block shown above the customer details."""

    title: str = DEFAULT_BLOCK_TITLE
    products: List[RecommendedProduct] = Field(default_factory=list)


class CheckoutExtensions:
    """Explicitly composed checkout extension points.

    Args:
        store: Commerce store collaborator.
        recommender: Callable returning product ids for a user; defaults to
            the category-affinity recommender.
        field_rules: Rules for cart-conditioned fields.
        block_title: Heading of the recommendation block.
    """

    def __init__(
        self,
        store: CommerceStore,
        recommender: Optional[Recommender] = None,
        field_rules: Optional[Sequence[FieldRule]] = None,
        block_title: str = DEFAULT_BLOCK_TITLE,
    ):
        self.store = store
        self.recommender = recommender or recommend
        self.field_rules = list(field_rules) if field_rules is not None else default_field_rules()
        self.block_title = block_title

    def before_customer_details(self, user_id: Optional[int]) -> Optional[RecommendationBlock]:
        """Build the recommendation block for a logged-in shopper.

        Returns None for guests, when there is nothing to recommend, or when
        the recommender or the store fails. Checkout is never blocked.
        """
        if user_id is None:
            return None

        start_time = time.time()
        try:
            product_ids = self.recommender(user_id, self.store)
        except CheckoutRecException as e:
            return self._omit_block(user_id, e)
        except Exception as e:
            return self._omit_block(user_id, e, exc_info=True)

        metrics_service.record_recommendation(
            (time.time() - start_time) * 1000, empty=not product_ids
        )

        products = []
        for product_id in product_ids:
            try:
                product = self.store.get_product(product_id)
            except ProductNotFoundError:
                continue
            except CheckoutRecException as e:
                return self._omit_block(user_id, e)
            products.append(
                RecommendedProduct(
                    product_id=product.product_id,
                    name=product.name,
                    image=product.image,
                    price=product.price,
                    permalink=product.permalink,
                )
            )

        if not products:
            return None

        return RecommendationBlock(title=self.block_title, products=products)

    def _omit_block(self, user_id: int, error: Exception, exc_info: bool = False) -> None:
        metrics_service.record_failure()
        logger.error(
            "Recommendation block omitted",
            extra={"user_id": user_id, "error": str(error), "error_type": type(error).__name__},
            exc_info=exc_info,
        )
        return None

    def checkout_fields(
        self,
        base_fields: Sequence[CheckoutField],
        cart_product_ids: Iterable[int],
    ) -> List[CheckoutField]:
        """Return the checkout fields for the current cart."""
        return customize_checkout_fields(
            base_fields, cart_product_ids, self.store, self.field_rules
        )

    def update_order_meta(
        self,
        order_id: int,
        submitted: Dict[str, str],
        cart_product_ids: Iterable[int],
    ) -> Dict[str, str]:
        """Save the custom field values active for the cart to the order.

        Only fields triggered by ``cart_product_ids`` are saved. Values posted
        for other keys, e.g. with an empty or stale cart, are not stored.
        """
        custom_fields = self.checkout_fields([], cart_product_ids)

        active = {f.field_key for f in custom_fields}
        ignored = sorted(key for key in submitted if key not in active)
        if ignored:
            logger.debug(
                "Ignoring values for fields not active for this cart",
                extra={"order_id": order_id, "ignored_keys": ignored},
            )

        return save_custom_checkout_fields(order_id, submitted, custom_fields, self.store)
