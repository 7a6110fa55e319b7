"""Shared FastAPI dependencies.

Holds the per-process commerce store loaded from the CSV export, and builds
the checkout extension points from the settings.
"""

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Dict, Optional

from fastapi import Depends

from src.api.exceptions import StoreUnavailableError
from src.checkout.fields import default_field_rules
from src.checkout.hooks import CheckoutExtensions
from src.config import Settings, get_settings
from src.recommender.affinity import recommend
from src.recommender.store import CommerceStore
from src.recommender.utils import check_data_exists, load_store_from_csv

# Configure module logger
logger = logging.getLogger(__name__)

# Cache for the loaded store
_store_cache: Optional[Dict] = None


def load_store_if_needed(data_dir: str) -> CommerceStore:
    """Load the commerce store export if not already loaded.

    Uses a module-level cache to avoid reloading the CSV files on every
    request.

    Raises:
        StoreUnavailableError: If the export is missing or cannot be read.
    """
    global _store_cache

    if _store_cache is not None:
        return _store_cache["store"]

    if not check_data_exists(data_dir):
        logger.error(f"Commerce store export not found in {data_dir}")
        raise StoreUnavailableError("load", FileNotFoundError(f"No export in {data_dir}"))

    try:
        store = load_store_from_csv(data_dir)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load commerce store: {e}", exc_info=True)
        raise StoreUnavailableError("load", e) from e

    _store_cache = {
        "store": store,
        "data_dir": data_dir,
        "loaded_at": datetime.now(timezone.utc).isoformat(),
    }
    return store


def use_store(store: CommerceStore, source: str = "injected") -> None:
    """Serve requests from an already constructed store.

    Lets a host application plug in its own ``CommerceStore`` adapter
    instead of the CSV export.
    """
    global _store_cache
    _store_cache = {
        "store": store,
        "data_dir": source,
        "loaded_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info(f"Using commerce store from {source}")


def clear_store_cache() -> None:
    global _store_cache
    _store_cache = None


def store_status() -> Dict:
    """Describe the cached store for the status endpoint."""
    if _store_cache is None:
        return {
            "store_loaded": False,
            "timestamp_last_loaded": None,
            "num_products": 0,
            "num_orders": 0,
        }
    store = _store_cache["store"]
    return {
        "store_loaded": True,
        "timestamp_last_loaded": _store_cache["loaded_at"],
        "num_products": len(getattr(store, "products", {})),
        "num_orders": len(getattr(store, "orders", {})),
    }


def get_store(settings: Settings = Depends(get_settings)) -> CommerceStore:
    return load_store_if_needed(settings.DATA_DIR)


def get_optional_store(settings: Settings = Depends(get_settings)) -> Optional[CommerceStore]:
    """Like :func:`get_store` but returns None when the store is unavailable."""
    try:
        return load_store_if_needed(settings.DATA_DIR)
    except StoreUnavailableError as e:
        logger.warning(f"Commerce store unavailable: {e.message}")
        return None


def build_extensions(store: CommerceStore, settings: Settings) -> CheckoutExtensions:
    """Compose the checkout extension points from the settings."""
    recommender = partial(
        recommend,
        statuses=settings.QUALIFYING_STATUSES,
        top_n_categories=settings.TOP_CATEGORY_COUNT,
        limit=settings.RECOMMENDATION_LIMIT,
    )
    return CheckoutExtensions(
        store,
        recommender=recommender,
        field_rules=default_field_rules(settings.ELECTRONIC_CATEGORY_SLUGS),
        block_title=settings.BLOCK_TITLE,
    )


def get_extensions(
    store: CommerceStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> CheckoutExtensions:
    return build_extensions(store, settings)


def get_optional_extensions(
    store: Optional[CommerceStore] = Depends(get_optional_store),
    settings: Settings = Depends(get_settings),
) -> Optional[CheckoutExtensions]:
    if store is None:
        return None
    return build_extensions(store, settings)
