"""Tests for the commerce store collaborator and the CSV export loader."""

import pandas as pd
import pytest

from src.api.exceptions import OrderNotFoundError, ProductNotFoundError
from src.recommender.store import InMemoryStore
from src.recommender.utils import (
    check_data_exists,
    load_store_from_csv,
    save_store_to_csv,
    summarize_categories,
)


@pytest.fixture
def export_dir(tmp_path):
    """Fixture writing a minimal hand-made CSV export."""
    pd.DataFrame(
        {
            "product_id": [1, 2, 3],
            "name": ["Phone", "Novel", "Lamp"],
            "price": [499.0, None, 35.0],
            "published": [True, True, False],
        }
    ).to_csv(tmp_path / "products.csv", index=False)
    pd.DataFrame(
        {"category_id": [1, 2], "slug": ["electronics", "books"], "name": ["Electronics", None]}
    ).to_csv(tmp_path / "categories.csv", index=False)
    pd.DataFrame({"product_id": [1, 2, 3], "category_id": [1, 2, 1]}).to_csv(
        tmp_path / "product_categories.csv", index=False
    )
    pd.DataFrame(
        {"order_id": [10, 11], "customer_id": [5, 5], "status": ["completed", "refunded"]}
    ).to_csv(tmp_path / "orders.csv", index=False)
    pd.DataFrame({"order_id": [10, 10, 11], "product_id": [1, None, 2]}).to_csv(
        tmp_path / "order_items.csv", index=False
    )
    return tmp_path


# ===== InMemoryStore =====


def test_find_orders_filters_customer_and_status(store):
    orders = store.find_orders(1, ["completed", "processing"])

    assert [o.order_id for o in orders] == [100]
    assert [o.order_id for o in store.find_orders(1, ["cancelled"])] == [101]
    assert store.find_orders(1, []) == []


def test_categories_of(store):
    slugs = [c.slug for c in store.categories_of(8)]

    assert slugs == ["electronics", "Laptops"]
    assert store.categories_of(10)[0].slug == "electronics"


def test_categories_of_missing_product_raises(store):
    with pytest.raises(ProductNotFoundError) as exc_info:
        store.categories_of(99)

    assert exc_info.value.details == {"product_id": 99}


def test_categories_of_ignores_unknown_category_ids():
    from src.recommender.models import Product

    store = InMemoryStore(products=[Product(product_id=1, name="Orphan", category_ids=[42])])

    assert store.categories_of(1) == []


def test_find_products_empty_categories_returns_nothing(store):
    assert store.find_products([], [], 4) == []


def test_find_products_excludes_and_limits(store):
    products = store.find_products([1], [5, 7], 2)

    assert [p.product_id for p in products] == [1, 2]

    products = store.find_products([1], [1, 2, 5, 7], 10)

    assert [p.product_id for p in products] == [8]


def test_remove_product_keeps_orders(store):
    store.remove_product(1)

    with pytest.raises(ProductNotFoundError):
        store.get_product(1)
    assert store.get_order(100).items[0].product_id == 1


def test_update_order_meta(store):
    store.update_order_meta(100, "_operating_system", "linux")

    assert store.get_order(100).meta == {"_operating_system": "linux"}


def test_update_order_meta_missing_order(store):
    with pytest.raises(OrderNotFoundError) as exc_info:
        store.update_order_meta(999, "_operating_system", "linux")

    assert exc_info.value.status_code == 404


# ===== CSV export =====


def test_load_store_from_csv(export_dir):
    store = load_store_from_csv(str(export_dir))

    assert set(store.products) == {1, 2, 3}
    assert store.products[1].category_ids == [1]
    assert store.products[2].price == 0.0
    assert store.products[3].published is False
    assert store.categories[2].name == "books"

    order = store.get_order(10)
    assert order.customer_id == 5
    assert [item.product_id for item in order.items] == [1, 0]
    assert order.items[0].quantity == 1


def test_load_store_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_store_from_csv(str(tmp_path / "nope"))


def test_load_store_missing_file(export_dir):
    (export_dir / "orders.csv").unlink()

    assert not check_data_exists(str(export_dir))
    with pytest.raises(FileNotFoundError):
        load_store_from_csv(str(export_dir))


def test_load_store_missing_columns(export_dir):
    pd.DataFrame({"order_id": [10], "customer_id": [5]}).to_csv(
        export_dir / "orders.csv", index=False
    )

    with pytest.raises(ValueError, match="status"):
        load_store_from_csv(str(export_dir))


def test_save_and_load_store(store, tmp_path):
    save_store_to_csv(store, str(tmp_path / "export"))

    assert check_data_exists(str(tmp_path / "export"))

    loaded = load_store_from_csv(str(tmp_path / "export"))

    assert loaded.products[8].category_ids == [1, 5]
    assert loaded.products[10].published is False
    assert [i.product_id for i in loaded.get_order(102).items] == [4, 0]
    assert loaded.get_order(200).items == []
    assert loaded.get_order(200).status == "pending"


def test_summarize_categories(store):
    assert summarize_categories(store, [2, 42, 1]) == ["books", "electronics"]
