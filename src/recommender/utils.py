"""Utility functions for loading the commerce store export.

This module reads and writes the CSV export of the platform's tables and
builds an :class:`~src.recommender.store.InMemoryStore` from it.
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from src.recommender.models import Category, LineItem, Order, Product
from src.recommender.store import InMemoryStore

# Configure module logger
logger = logging.getLogger(__name__)

# Export filenames
PRODUCTS_FILENAME = "products.csv"
CATEGORIES_FILENAME = "categories.csv"
PRODUCT_CATEGORIES_FILENAME = "product_categories.csv"
ORDERS_FILENAME = "orders.csv"
ORDER_ITEMS_FILENAME = "order_items.csv"

REQUIRED_COLUMNS = {
    PRODUCTS_FILENAME: {"product_id", "name"},
    CATEGORIES_FILENAME: {"category_id", "slug"},
    PRODUCT_CATEGORIES_FILENAME: {"product_id", "category_id"},
    ORDERS_FILENAME: {"order_id", "customer_id", "status"},
    ORDER_ITEMS_FILENAME: {"order_id", "product_id"},
}


def _read_table(csv_path: Path) -> pd.DataFrame:
    """Read one export table and validate its columns.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    df = pd.read_csv(csv_path)

    required_columns = REQUIRED_COLUMNS[csv_path.name]
    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"{csv_path.name} missing required columns: {missing}")

    logger.info(f"Loaded {len(df)} rows from {csv_path}")
    return df


def _text(value, default: str = "") -> str:
    return default if pd.isna(value) else str(value)


def load_store_from_csv(data_dir: str) -> InMemoryStore:
    """Build an in-memory store from a CSV export directory.

    Expects five files: ``products.csv`` (product_id, name, optional image,
    price, permalink, published), ``categories.csv`` (category_id, slug,
    optional name), ``product_categories.csv`` (product_id, category_id),
    ``orders.csv`` (order_id, customer_id, status) and ``order_items.csv``
    (order_id, product_id, optional quantity). A blank product_id in
    ``order_items.csv`` marks a deleted product.

    Args:
        data_dir: Directory containing the CSV files.

    Returns:
        InMemoryStore holding the exported records.

    Raises:
        FileNotFoundError: If the directory or a CSV file does not exist.
        ValueError: If a CSV is missing required columns.

    Example:
        >>> store = load_store_from_csv("data")
        >>> print(f"Products: {len(store.products)}")
    """
    data_path = Path(data_dir)
    if not data_path.exists():
        raise FileNotFoundError(f"Data directory does not exist: {data_dir}")

    logger.info(f"Loading commerce store from {data_dir}")

    products_df = _read_table(data_path / PRODUCTS_FILENAME)
    categories_df = _read_table(data_path / CATEGORIES_FILENAME)
    memberships_df = _read_table(data_path / PRODUCT_CATEGORIES_FILENAME)
    orders_df = _read_table(data_path / ORDERS_FILENAME)
    items_df = _read_table(data_path / ORDER_ITEMS_FILENAME)

    categories = [
        Category(
            category_id=int(row.category_id),
            slug=str(row.slug),
            name=_text(getattr(row, "name", None), default=str(row.slug)),
        )
        for row in categories_df.itertuples(index=False)
    ]

    product_categories: Dict[int, List[int]] = defaultdict(list)
    for row in memberships_df.itertuples(index=False):
        product_categories[int(row.product_id)].append(int(row.category_id))

    products = []
    for row in products_df.itertuples(index=False):
        product_id = int(row.product_id)
        price = getattr(row, "price", 0.0)
        published = getattr(row, "published", True)
        products.append(
            Product(
                product_id=product_id,
                name=str(row.name),
                image=_text(getattr(row, "image", None)),
                price=0.0 if pd.isna(price) else float(price),
                permalink=_text(getattr(row, "permalink", None)),
                category_ids=product_categories.get(product_id, []),
                published=True if pd.isna(published) else bool(published),
            )
        )

    # Blank product ids become 0, the deleted-product marker
    items_df = items_df.assign(
        product_id=pd.to_numeric(items_df["product_id"], errors="coerce")
        .fillna(0)
        .astype(int)
    )
    if "quantity" not in items_df.columns:
        items_df = items_df.assign(quantity=1)

    items_by_order: Dict[int, List[LineItem]] = defaultdict(list)
    for row in items_df.itertuples(index=False):
        items_by_order[int(row.order_id)].append(
            LineItem(product_id=int(row.product_id), quantity=int(row.quantity))
        )

    orders = [
        Order(
            order_id=int(row.order_id),
            customer_id=int(row.customer_id),
            status=str(row.status),
            items=items_by_order.get(int(row.order_id), []),
        )
        for row in orders_df.itertuples(index=False)
    ]

    store = InMemoryStore(products=products, categories=categories, orders=orders)

    logger.info(
        f"Commerce store loaded: {len(store.products)} products, "
        f"{len(store.categories)} categories, {len(store.orders)} orders"
    )

    return store


def save_store_to_csv(store: InMemoryStore, output_dir: str) -> None:
    """Write a store to a CSV export directory.

    The output can be read back with :func:`load_store_from_csv`. Creates
    the directory if it doesn't exist.

    Args:
        store: Store to export.
        output_dir: Directory path where the CSV files will be saved.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving commerce store to {output_dir}")

    pd.DataFrame(
        [
            {
                "product_id": p.product_id,
                "name": p.name,
                "image": p.image,
                "price": p.price,
                "permalink": p.permalink,
                "published": p.published,
            }
            for p in store.products.values()
        ],
        columns=["product_id", "name", "image", "price", "permalink", "published"],
    ).to_csv(output_path / PRODUCTS_FILENAME, index=False)

    pd.DataFrame(
        [c.model_dump() for c in store.categories.values()],
        columns=["category_id", "slug", "name"],
    ).to_csv(output_path / CATEGORIES_FILENAME, index=False)

    pd.DataFrame(
        [
            {"product_id": p.product_id, "category_id": cid}
            for p in store.products.values()
            for cid in p.category_ids
        ],
        columns=["product_id", "category_id"],
    ).to_csv(output_path / PRODUCT_CATEGORIES_FILENAME, index=False)

    pd.DataFrame(
        [
            {"order_id": o.order_id, "customer_id": o.customer_id, "status": o.status}
            for o in store.orders.values()
        ],
        columns=["order_id", "customer_id", "status"],
    ).to_csv(output_path / ORDERS_FILENAME, index=False)

    pd.DataFrame(
        [
            {"order_id": o.order_id, "product_id": item.product_id, "quantity": item.quantity}
            for o in store.orders.values()
            for item in o.items
        ],
        columns=["order_id", "product_id", "quantity"],
    ).to_csv(output_path / ORDER_ITEMS_FILENAME, index=False)

    logger.info(f"Saved {len(store.products)} products and {len(store.orders)} orders")


def get_data_paths(data_dir: str) -> Tuple[Path, ...]:
    """Get file paths of the export tables without loading them."""
    data_path = Path(data_dir)
    return tuple(data_path / name for name in REQUIRED_COLUMNS)


def check_data_exists(data_dir: str) -> bool:
    """Check if all export tables exist.

    Args:
        data_dir: Directory path where the CSV files should be stored.

    Returns:
        True if all CSV files exist, False otherwise.
    """
    return all(path.exists() for path in get_data_paths(data_dir))


def summarize_categories(store: InMemoryStore, category_ids: Iterable[int]) -> List[str]:
    """Return category slugs for ids, skipping unknown ones."""
    return [
        store.categories[cid].slug for cid in category_ids if cid in store.categories
    ]
