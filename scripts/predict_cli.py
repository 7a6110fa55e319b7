"""CLI script for getting product recommendations.

Useful for checking what a shopper would see on the checkout page. Loads the
commerce store export and prints the recommendations for a user.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.api.exceptions import CheckoutRecException
from src.recommender.affinity import (
    DEFAULT_LIMIT,
    DEFAULT_TOP_CATEGORIES,
    recommend_with_details,
)
from src.recommender.utils import load_store_from_csv, summarize_categories

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py 42
  python scripts/predict_cli.py 42 --limit 2
  python scripts/predict_cli.py 42 --data-dir exports/today --explain
        """
    )

    parser.add_argument(
        "user_id",
        type=int,
        help="User ID to get recommendations for"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Maximum number of recommendations (default: {DEFAULT_LIMIT})"
    )

    parser.add_argument(
        "--top-categories",
        type=int,
        default=DEFAULT_TOP_CATEGORIES,
        help=f"Number of categories to draw from (default: {DEFAULT_TOP_CATEGORIES})"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing the store CSV export (default: data)"
    )

    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show category counts behind the recommendations"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        store = load_store_from_csv(args.data_dir)
        result = recommend_with_details(
            args.user_id,
            store,
            top_n_categories=args.top_categories,
            limit=args.limit,
        )
    except FileNotFoundError as e:
        print(f"Error: Store export not found in {args.data_dir}", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)
    except (ValueError, CheckoutRecException) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nRecommendations for user {args.user_id}:")
    if result.recommendations:
        for product_id in result.recommendations:
            product = store.products[product_id]
            print(f"  {product_id}: {product.name} ({product.price:.2f})")
    else:
        print("  (none)")

    if args.explain:
        print(f"\nPurchased products: {sorted(result.purchased_product_ids)}")
        print(f"Skipped line items: {result.skipped_items}")
        print("Category counts:")
        for category_id, count in sorted(
            result.category_counts.items(), key=lambda x: x[1], reverse=True
        ):
            slug = summarize_categories(store, [category_id]) or ["?"]
            print(f"  {slug[0]} ({category_id}): {count}")
        print(f"Top categories: {summarize_categories(store, result.top_categories)}")

    print()


if __name__ == "__main__":
    main()
