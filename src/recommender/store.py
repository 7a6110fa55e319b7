"""Commerce store collaborator.

The recommender and the checkout field feature talk to the platform's data
store only through :class:`CommerceStore`. :class:`InMemoryStore` backs it
with plain dictionaries, loaded from CSV exports by
:func:`src.recommender.utils.load_store_from_csv` or built directly in tests.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from src.api.exceptions import OrderNotFoundError, ProductNotFoundError
from src.recommender.models import Category, Order, Product

# Configure module logger
logger = logging.getLogger(__name__)


class CommerceStore(ABC):
    """Read access to orders and the catalog, plus order meta writes.

    Implementations raise ``StoreUnavailableError`` when the underlying
    storage fails. Callers must not retry.
    """

    @abstractmethod
    def find_orders(self, customer_id: int, statuses: Iterable[str]) -> List[Order]:
        """Return the customer's orders whose status is in ``statuses``."""

    @abstractmethod
    def categories_of(self, product_id: int) -> List[Category]:
        """Return the categories of a product, possibly empty.

        Raises:
            ProductNotFoundError: If the product no longer exists.
        """

    @abstractmethod
    def find_products(
        self,
        category_ids: Iterable[int],
        exclude_product_ids: Iterable[int],
        limit: int,
    ) -> List[Product]:
        """Return up to ``limit`` published products in any of the categories.

        Products in ``exclude_product_ids`` are never returned. An empty
        ``category_ids`` matches nothing.
        """

    @abstractmethod
    def get_product(self, product_id: int) -> Product:
        """Return a product.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """

    @abstractmethod
    def get_order(self, order_id: int) -> Order:
        """Return an order.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """

    @abstractmethod
    def update_order_meta(self, order_id: int, key: str, value: str) -> None:
        """Set one meta entry on an order.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """


class InMemoryStore(CommerceStore):
    """Dictionary-backed store.

    Catalog order is insertion order, which makes ``find_products``
    deterministic.
    """

    def __init__(
        self,
        products: Optional[Iterable[Product]] = None,
        categories: Optional[Iterable[Category]] = None,
        orders: Optional[Iterable[Order]] = None,
    ):
        self.products: Dict[int, Product] = {}
        self.categories: Dict[int, Category] = {}
        self.orders: Dict[int, Order] = {}

        for category in categories or []:
            self.add_category(category)
        for product in products or []:
            self.add_product(product)
        for order in orders or []:
            self.add_order(order)

        logger.debug(
            f"Initialized InMemoryStore: {len(self.products)} products, "
            f"{len(self.categories)} categories, {len(self.orders)} orders"
        )

    def add_category(self, category: Category) -> None:
        self.categories[category.category_id] = category

    def add_product(self, product: Product) -> None:
        self.products[product.product_id] = product

    def add_order(self, order: Order) -> None:
        self.orders[order.order_id] = order

    def remove_product(self, product_id: int) -> None:
        """Delete a product from the catalog, leaving orders untouched."""
        self.products.pop(product_id, None)

    def find_orders(self, customer_id: int, statuses: Iterable[str]) -> List[Order]:
        wanted = set(statuses)
        return [
            order
            for order in self.orders.values()
            if order.customer_id == customer_id and order.status in wanted
        ]

    def categories_of(self, product_id: int) -> List[Category]:
        product = self.get_product(product_id)
        # Dangling category references count as no membership
        return [
            self.categories[cid]
            for cid in product.category_ids
            if cid in self.categories
        ]

    def find_products(
        self,
        category_ids: Iterable[int],
        exclude_product_ids: Iterable[int],
        limit: int,
    ) -> List[Product]:
        wanted = set(category_ids)
        excluded = set(exclude_product_ids)

        if not wanted or limit <= 0:
            return []

        results = []
        for product in self.products.values():
            if not product.published or product.product_id in excluded:
                continue
            if wanted.intersection(product.category_ids):
                results.append(product)
                if len(results) >= limit:
                    break

        return results

    def get_product(self, product_id: int) -> Product:
        product = self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_order(self, order_id: int) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def update_order_meta(self, order_id: int, key: str, value: str) -> None:
        order = self.get_order(order_id)
        order.meta[key] = value
        logger.debug(f"Updated meta '{key}' on order {order_id}")
