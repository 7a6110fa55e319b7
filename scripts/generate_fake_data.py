"""Generate a fake commerce store export for testing and development.

This module creates a synthetic catalog (categories and products) and order
history and writes it as the CSV export the service loads.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_store
        store = generate_fake_store(num_users=100, num_products=200)
"""

import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.models import Category, LineItem, Order, Product
from src.recommender.store import InMemoryStore
from src.recommender.utils import save_store_to_csv

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_ORDERS = 300
DEFAULT_MAX_ITEMS_PER_ORDER = 4
DEFAULT_RANDOM_SEED = 42

DEFAULT_CATEGORY_SLUGS = [
    "electronics", "computers", "laptops", "clothing", "home",
    "sports", "toys", "books", "beauty", "garden",
]
ORDER_STATUSES = ["completed", "processing", "pending", "cancelled", "refunded"]
ORDER_STATUS_WEIGHTS = [0.6, 0.15, 0.1, 0.1, 0.05]


def generate_fake_store(
    num_users: int = DEFAULT_NUM_USERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_orders: int = DEFAULT_NUM_ORDERS,
    category_slugs: Optional[List[str]] = None,
    random_seed: int = DEFAULT_RANDOM_SEED,
) -> InMemoryStore:
    """Generate a synthetic catalog and order history.

    Every product gets one or two categories. Orders get a random status
    (mostly completed) and one to four line items.

    Args:
        num_users: Number of distinct customers. Must be positive.
        num_products: Number of catalog products. Must be positive.
        num_orders: Number of orders to generate. Must be positive.
        category_slugs: Category slugs to use; defaults to a fixed set.
        random_seed: Random seed for reproducibility.

    Returns:
        An InMemoryStore holding the generated records.

    Raises:
        ValueError: If any numeric parameter is non-positive.
    """
    if num_users <= 0 or num_products <= 0 or num_orders <= 0:
        raise ValueError("num_users, num_products, and num_orders must be positive")

    if category_slugs is None:
        category_slugs = DEFAULT_CATEGORY_SLUGS

    rng = np.random.default_rng(random_seed)

    categories = [
        Category(category_id=idx, slug=slug, name=slug.title())
        for idx, slug in enumerate(category_slugs, start=1)
    ]
    category_ids = [c.category_id for c in categories]

    products = []
    for product_id in range(1, num_products + 1):
        n_categories = int(rng.integers(1, 3))
        product_categories = rng.choice(category_ids, n_categories, replace=False)
        products.append(
            Product(
                product_id=product_id,
                name=f"Product {product_id}",
                image=f"https://shop.example.com/images/{product_id}-150x150.jpg",
                price=round(float(rng.uniform(5, 500)), 2),
                permalink=f"https://shop.example.com/product/product-{product_id}/",
                category_ids=[int(cid) for cid in product_categories],
                published=bool(rng.random() > 0.05),
            )
        )

    orders = []
    for order_id in range(1, num_orders + 1):
        n_items = int(rng.integers(1, DEFAULT_MAX_ITEMS_PER_ORDER + 1))
        orders.append(
            Order(
                order_id=order_id,
                customer_id=int(rng.integers(1, num_users + 1)),
                status=str(rng.choice(ORDER_STATUSES, p=ORDER_STATUS_WEIGHTS)),
                items=[
                    LineItem(
                        product_id=int(rng.integers(1, num_products + 1)),
                        quantity=int(rng.integers(1, 3)),
                    )
                    for _ in range(n_items)
                ],
            )
        )

    return InMemoryStore(products=products, categories=categories, orders=orders)


def main() -> None:
    """Generate a default fake export into data/ and print a summary."""
    print(f"Generating {DEFAULT_NUM_ORDERS} fake orders...")
    print(f"Users: {DEFAULT_NUM_USERS}, Products: {DEFAULT_NUM_PRODUCTS}")

    try:
        store = generate_fake_store()
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = project_root / "data"
    save_store_to_csv(store, str(data_dir))

    statuses = {}
    for order in store.orders.values():
        statuses[order.status] = statuses.get(order.status, 0) + 1

    print(f"\nData generated successfully!")
    print(f"Saved to: {data_dir}")
    print(f"\nData summary:")
    print(f"  Categories: {len(store.categories)}")
    print(f"  Products: {len(store.products)}")
    print(f"  Orders: {len(store.orders)}")
    print(f"  Customers: {len({o.customer_id for o in store.orders.values()})}")
    print(f"  Order statuses: {statuses}")


if __name__ == '__main__':
    main()
