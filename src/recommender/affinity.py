"""Category-affinity recommendations from purchase history.

Counts how often each category appears across a shopper's qualifying past
orders, keeps the most frequent categories and asks the catalog for products
in them that the shopper has not bought yet.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from src.api.exceptions import (
    CheckoutRecException,
    ProductNotFoundError,
    RecommendationError,
)
from src.recommender.models import (
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PROCESSING,
    Order,
)
from src.recommender.store import CommerceStore

# Configure module logger
logger = logging.getLogger(__name__)

# Default parameters
QUALIFYING_STATUSES = (ORDER_STATUS_COMPLETED, ORDER_STATUS_PROCESSING)
DEFAULT_TOP_CATEGORIES = 3
DEFAULT_LIMIT = 4


@dataclass
class AffinityResult:
    """Everything computed for one recommendation request."""

    user_id: int
    recommendations: List[int] = field(default_factory=list)
    category_counts: Dict[int, int] = field(default_factory=dict)
    top_categories: List[int] = field(default_factory=list)
    purchased_product_ids: Set[int] = field(default_factory=set)
    skipped_items: int = 0


def count_category_affinity(
    orders: Iterable[Order],
    store: CommerceStore,
) -> Tuple[Counter, Set[int], int]:
    """Count category occurrences across the line items of ``orders``.

    Line items whose product was deleted contribute no counts and are
    reported in the skipped total.

    Args:
        orders: Qualifying orders of one customer.
        store: Store used to resolve product categories.

    Returns:
        A tuple containing:
            - Counter of category id to occurrences, in first-seen order
            - Set of purchased product ids
            - Number of line items skipped
    """
    category_counts: Counter = Counter()
    purchased: Set[int] = set()
    skipped = 0

    for order in orders:
        for item in order.items:
            if not item.product_id:
                skipped += 1
                logger.debug(
                    "Skipping line item without product",
                    extra={"order_id": order.order_id},
                )
                continue

            purchased.add(item.product_id)

            try:
                categories = store.categories_of(item.product_id)
            except ProductNotFoundError:
                skipped += 1
                logger.warning(
                    "Purchased product missing from catalog, skipping",
                    extra={"order_id": order.order_id, "product_id": item.product_id},
                )
                continue

            for category in categories:
                category_counts[category.category_id] += 1

    return category_counts, purchased, skipped


def rank_top_categories(
    category_counts: Counter,
    top_n: int = DEFAULT_TOP_CATEGORIES,
) -> List[int]:
    """Return the ``top_n`` most frequent category ids.

    Ties keep first-encounter order.
    """
    if top_n <= 0:
        return []
    return [cid for cid, _ in category_counts.most_common(top_n)]


def recommend_with_details(
    user_id: int,
    store: CommerceStore,
    statuses: Sequence[str] = QUALIFYING_STATUSES,
    top_n_categories: int = DEFAULT_TOP_CATEGORIES,
    limit: int = DEFAULT_LIMIT,
) -> AffinityResult:
    """Compute recommendations for a user and keep the intermediate data.

    Args:
        user_id: Logged-in shopper.
        store: Commerce store collaborator.
        statuses: Order statuses that count as purchase history.
        top_n_categories: How many categories to draw candidates from.
        limit: Maximum number of recommended products.

    Returns:
        AffinityResult with the recommended product ids in catalog order.

    Raises:
        StoreUnavailableError: If the store cannot be queried.
        RecommendationError: On any other unexpected failure.
    """
    start_time = time.time()

    logger.info(
        "Starting recommendation generation",
        extra={"user_id": user_id, "top_n_categories": top_n_categories, "limit": limit},
    )

    try:
        orders = store.find_orders(user_id, statuses)
        category_counts, purchased, skipped = count_category_affinity(orders, store)
        top_categories = rank_top_categories(category_counts, top_n_categories)

        result = AffinityResult(
            user_id=user_id,
            category_counts=dict(category_counts),
            top_categories=top_categories,
            purchased_product_ids=purchased,
            skipped_items=skipped,
        )

        if not top_categories:
            # No history to draw from: no catalog-wide fallback
            logger.info(
                "No category affinity, returning no recommendations",
                extra={"user_id": user_id, "num_orders": len(orders)},
            )
            return result

        products = store.find_products(
            category_ids=top_categories,
            exclude_product_ids=purchased,
            limit=limit,
        )
        result.recommendations = [
            p.product_id for p in products if p.product_id not in purchased
        ][:limit]

        total_time = time.time() - start_time
        logger.info(
            "Recommendations generated",
            extra={
                "user_id": user_id,
                "num_orders": len(orders),
                "num_recommendations": len(result.recommendations),
                "top_categories": top_categories,
                "skipped_items": skipped,
                "total_time_ms": round(total_time * 1000, 2),
            },
        )

        return result

    except CheckoutRecException as e:
        logger.error(
            "Commerce store query failed",
            extra={"user_id": user_id, "error": e.message},
        )
        raise
    except Exception as e:
        total_time = time.time() - start_time
        logger.error(
            "Recommendation generation failed",
            extra={
                "user_id": user_id,
                "error": str(e),
                "error_type": type(e).__name__,
                "total_time_ms": round(total_time * 1000, 2),
            },
        )
        raise RecommendationError(user_id, e) from e


def recommend(
    user_id: int,
    store: CommerceStore,
    statuses: Sequence[str] = QUALIFYING_STATUSES,
    top_n_categories: int = DEFAULT_TOP_CATEGORIES,
    limit: int = DEFAULT_LIMIT,
) -> List[int]:
    """Return up to ``limit`` product ids the user has not bought yet.

    An empty list means there is nothing to show.

    Example:
        >>> recommend(42, store)
        [17, 23, 31]
    """
    return recommend_with_details(
        user_id,
        store,
        statuses=statuses,
        top_n_categories=top_n_categories,
        limit=limit,
    ).recommendations


def batch_recommend_for_users(
    user_ids: List[int],
    store: CommerceStore,
    statuses: Sequence[str] = QUALIFYING_STATUSES,
    top_n_categories: int = DEFAULT_TOP_CATEGORIES,
    limit: int = DEFAULT_LIMIT,
) -> Dict[int, List[int]]:
    """Generate recommendations for multiple users against one store.

    A failure for one user is logged and yields an empty list for that user.

    Args:
        user_ids: Users to generate recommendations for.
        store: Commerce store collaborator.
        statuses: Order statuses that count as purchase history.
        top_n_categories: How many categories to draw candidates from.
        limit: Maximum number of recommended products per user.

    Returns:
        Dictionary mapping user IDs to their recommended product ID lists.
    """
    logger.info(f"Generating batch recommendations for {len(user_ids)} users")

    results = {}
    for user_id in user_ids:
        try:
            results[user_id] = recommend(
                user_id,
                store,
                statuses=statuses,
                top_n_categories=top_n_categories,
                limit=limit,
            )
        except CheckoutRecException as e:
            logger.error(f"Failed to generate recommendations for user {user_id}: {e}")
            results[user_id] = []

    logger.info(f"Batch recommendations completed for {len(results)} users")

    return results
