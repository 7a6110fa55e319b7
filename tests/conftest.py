"""Shared fixtures for the CheckoutRec tests.

The ``store`` fixture holds a small catalog:

    categories: 1 electronics, 2 books, 3 home, 4 toys, 5 laptops
    products:   1-2, 5, 7 electronics; 3, 6 books; 4, 11 home; 9 toys;
                8 electronics + laptops; 10 electronics but unpublished
    user 1:     completed order [1, 2, 3], cancelled order [9]
    user 2:     no orders
    user 3:     processing order [4, deleted], completed order [99 (gone)]
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.api.exceptions import StoreUnavailableError
from src.recommender.models import Category, LineItem, Order, Product
from src.recommender.store import InMemoryStore


def build_store() -> InMemoryStore:
    categories = [
        Category(category_id=1, slug="electronics", name="Electronics"),
        Category(category_id=2, slug="books", name="Books"),
        Category(category_id=3, slug="home", name="Home"),
        Category(category_id=4, slug="toys", name="Toys"),
        Category(category_id=5, slug="Laptops", name="Laptops"),
    ]
    products = [
        Product(product_id=1, name="Phone", price=499.0, category_ids=[1]),
        Product(product_id=2, name="Headphones", price=89.5, category_ids=[1]),
        Product(product_id=3, name="Novel", price=12.0, category_ids=[2]),
        Product(product_id=4, name="Lamp", price=35.0, category_ids=[3]),
        Product(
            product_id=5,
            name="Tablet",
            image="https://shop.example.com/tablet.jpg",
            price=299.0,
            permalink="https://shop.example.com/product/tablet/",
            category_ids=[1],
        ),
        Product(product_id=6, name="Cookbook", price=25.0, category_ids=[2]),
        Product(product_id=7, name="Charger", price=19.0, category_ids=[1]),
        Product(product_id=8, name="Laptop", price=1299.0, category_ids=[1, 5]),
        Product(product_id=9, name="Puzzle", price=15.0, category_ids=[4]),
        Product(product_id=10, name="Prototype", category_ids=[1], published=False),
        Product(product_id=11, name="Rug", price=80.0, category_ids=[3]),
    ]
    orders = [
        Order(
            order_id=100,
            customer_id=1,
            status="completed",
            items=[LineItem(product_id=1), LineItem(product_id=2), LineItem(product_id=3)],
        ),
        Order(order_id=101, customer_id=1, status="cancelled", items=[LineItem(product_id=9)]),
        Order(
            order_id=102,
            customer_id=3,
            status="processing",
            items=[LineItem(product_id=4), LineItem(product_id=0)],
        ),
        Order(order_id=103, customer_id=3, status="completed", items=[LineItem(product_id=99)]),
        Order(order_id=200, customer_id=2, status="pending"),
    ]
    return InMemoryStore(products=products, categories=categories, orders=orders)


@pytest.fixture
def store() -> InMemoryStore:
    """Fixture providing a fresh in-memory store."""
    return build_store()


class ProductLookupOutageStore(InMemoryStore):
    """Store whose product detail lookups time out.

    Category lookups still work, so the recommender and the field rules run
    and only the display data for the block is unavailable.
    """

    def get_product(self, product_id):
        raise StoreUnavailableError("get_product", TimeoutError("read timed out"))

    def categories_of(self, product_id):
        product = super().get_product(product_id)
        return [self.categories[cid] for cid in product.category_ids if cid in self.categories]


@pytest.fixture
def product_lookup_outage(store) -> ProductLookupOutageStore:
    """Fixture providing the fixture catalog behind failing product lookups."""
    return ProductLookupOutageStore(
        products=store.products.values(),
        categories=store.categories.values(),
        orders=store.orders.values(),
    )
