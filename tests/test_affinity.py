"""Tests for the category-affinity recommender."""

from collections import Counter

import pytest

from scripts.generate_fake_data import generate_fake_store
from src.api.exceptions import RecommendationError, StoreUnavailableError
from src.recommender.affinity import (
    QUALIFYING_STATUSES,
    batch_recommend_for_users,
    count_category_affinity,
    rank_top_categories,
    recommend,
    recommend_with_details,
)
from src.recommender.models import Category, LineItem, Order, Product
from src.recommender.store import InMemoryStore


class RecordingStore(InMemoryStore):
    """Store that records the catalog queries it receives."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.catalog_queries = []

    def find_products(self, category_ids, exclude_product_ids, limit):
        self.catalog_queries.append(
            (list(category_ids), set(exclude_product_ids), limit)
        )
        return super().find_products(category_ids, exclude_product_ids, limit)


class UnavailableStore(InMemoryStore):
    def find_orders(self, customer_id, statuses):
        raise StoreUnavailableError("find_orders", ConnectionError("connection refused"))


class BrokenStore(InMemoryStore):
    def find_orders(self, customer_id, statuses):
        raise RuntimeError("unexpected")


class IgnoresExclusionStore(InMemoryStore):
    def find_products(self, category_ids, exclude_product_ids, limit):
        return super().find_products(category_ids, [], limit)


def _recording_copy(store):
    return RecordingStore(
        products=store.products.values(),
        categories=store.categories.values(),
        orders=store.orders.values(),
    )


# ===== Affinity counting =====


def test_count_category_affinity_scenario():
    """Two electronics and one book give {electronics: 2, books: 1}."""
    store = InMemoryStore(
        categories=[
            Category(category_id=10, slug="electronics"),
            Category(category_id=20, slug="books"),
        ],
        products=[
            Product(product_id=1, name="Phone", category_ids=[10]),
            Product(product_id=2, name="Camera", category_ids=[10]),
            Product(product_id=3, name="Novel", category_ids=[20]),
        ],
    )
    orders = [
        Order(
            order_id=1,
            customer_id=7,
            status="completed",
            items=[LineItem(product_id=1), LineItem(product_id=2), LineItem(product_id=3)],
        )
    ]

    counts, purchased, skipped = count_category_affinity(orders, store)

    assert dict(counts) == {10: 2, 20: 1}
    assert purchased == {1, 2, 3}
    assert skipped == 0
    assert rank_top_categories(counts) == [10, 20]


def test_count_category_affinity_skips_deleted_products(store):
    """Deleted and missing products contribute no counts."""
    orders = store.find_orders(3, QUALIFYING_STATUSES)

    counts, purchased, skipped = count_category_affinity(orders, store)

    assert dict(counts) == {3: 1}
    assert purchased == {4, 99}
    assert skipped == 2


def test_product_without_categories_contributes_nothing():
    store = InMemoryStore(products=[Product(product_id=1, name="Gift card")])
    orders = [Order(order_id=1, customer_id=1, status="completed", items=[LineItem(product_id=1)])]

    counts, purchased, skipped = count_category_affinity(orders, store)

    assert counts == Counter()
    assert purchased == {1}
    assert skipped == 0


def test_counts_repeat_purchases():
    """Buying the same product twice counts its categories twice."""
    store = InMemoryStore(
        categories=[Category(category_id=1, slug="coffee")],
        products=[Product(product_id=1, name="Beans", category_ids=[1])],
    )
    orders = [
        Order(order_id=n, customer_id=1, status="completed", items=[LineItem(product_id=1)])
        for n in range(3)
    ]

    counts, purchased, _ = count_category_affinity(orders, store)

    assert counts[1] == 3
    assert purchased == {1}


# ===== Category ranking =====


def test_rank_top_categories_excludes_lowest():
    counts = Counter({"A": 5, "B": 3, "C": 3, "D": 1})

    assert rank_top_categories(counts) == ["A", "B", "C"]


def test_rank_top_categories_ties_keep_encounter_order():
    counts = Counter()
    for category in ["D", "C", "A", "B", "A", "C", "B", "A", "C", "B", "A", "A"]:
        counts[category] += 1

    top = rank_top_categories(counts)

    assert top == ["A", "C", "B"]
    assert "D" not in top


def test_rank_top_categories_fewer_than_requested():
    assert rank_top_categories(Counter({7: 2})) == [7]
    assert rank_top_categories(Counter()) == []
    assert rank_top_categories(Counter({7: 2}), top_n=0) == []


# ===== recommend =====


def test_recommend_returns_unpurchased_products_from_top_categories(store):
    recording = _recording_copy(store)

    recommendations = recommend(1, recording)

    assert recommendations == [5, 6, 7, 8]
    assert recording.catalog_queries == [([1, 2], {1, 2, 3}, 4)]


def test_recommend_ignores_non_qualifying_orders(store):
    """The cancelled toy order does not make toys a top category."""
    result = recommend_with_details(1, store)

    assert 4 not in result.category_counts
    assert 9 not in result.purchased_product_ids


def test_recommend_for_user_without_orders_is_empty(store):
    recording = _recording_copy(store)

    assert recommend(2, recording) == []
    assert recommend(12345, recording) == []
    assert recording.catalog_queries == []


def test_recommend_without_category_history_skips_catalog_query():
    store = RecordingStore(
        products=[
            Product(product_id=1, name="Gift card"),
            Product(product_id=2, name="Other", category_ids=[1]),
        ],
        categories=[Category(category_id=1, slug="misc")],
        orders=[
            Order(order_id=1, customer_id=1, status="completed", items=[LineItem(product_id=1)])
        ],
    )

    assert recommend(1, store) == []
    assert store.catalog_queries == []


def test_recommend_with_deleted_product_completes(store):
    result = recommend_with_details(3, store)

    assert result.recommendations == [11]
    assert result.skipped_items == 2


def test_recommend_respects_limit(store):
    assert recommend(1, store, limit=2) == [5, 6]
    assert recommend(1, store, limit=0) == []


def test_recommend_top_categories_parameter(store):
    result = recommend_with_details(1, store, top_n_categories=1)

    assert result.top_categories == [1]
    assert result.recommendations == [5, 7, 8]


def test_recommend_skips_unpublished_products(store):
    store.add_order(
        Order(order_id=300, customer_id=1, status="completed", items=[LineItem(product_id=5)])
    )

    recommendations = recommend(1, store)

    assert 10 not in recommendations
    assert recommendations == [6, 7, 8]


def test_recommend_filters_purchased_even_if_store_does_not():
    store = IgnoresExclusionStore(
        categories=[Category(category_id=1, slug="electronics")],
        products=[
            Product(product_id=1, name="Phone", category_ids=[1]),
            Product(product_id=2, name="Case", category_ids=[1]),
        ],
        orders=[
            Order(order_id=1, customer_id=1, status="completed", items=[LineItem(product_id=1)])
        ],
    )

    assert recommend(1, store) == [2]


def test_recommend_is_idempotent(store):
    assert recommend(1, store) == recommend(1, store)


def test_recommend_propagates_store_unavailable(store):
    unavailable = UnavailableStore(products=store.products.values())

    with pytest.raises(StoreUnavailableError) as exc_info:
        recommend(1, unavailable)

    assert exc_info.value.status_code == 503


def test_recommend_wraps_unexpected_errors():
    with pytest.raises(RecommendationError) as exc_info:
        recommend(1, BrokenStore())

    assert exc_info.value.details["error_type"] == "RuntimeError"


def test_recommend_properties_on_generated_store():
    """No purchased products and at most four results, for every user."""
    store = generate_fake_store(num_users=30, num_products=60, num_orders=150, random_seed=7)

    for user_id in range(1, 31):
        purchased = {
            item.product_id
            for order in store.find_orders(user_id, QUALIFYING_STATUSES)
            for item in order.items
        }

        recommendations = recommend(user_id, store)

        assert 0 <= len(recommendations) <= 4
        assert not purchased.intersection(recommendations)
        assert len(recommendations) == len(set(recommendations))
        assert recommendations == recommend(user_id, store)


# ===== Batch =====


def test_batch_recommend_for_users(store):
    results = batch_recommend_for_users([1, 2, 3], store)

    assert results == {1: [5, 6, 7, 8], 2: [], 3: [11]}


def test_batch_recommend_failure_yields_empty_list():
    results = batch_recommend_for_users([1, 2], UnavailableStore())

    assert results == {1: [], 2: []}
