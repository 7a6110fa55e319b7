"""Recommendation endpoints for the CheckoutRec API.

This module provides API endpoints for category-affinity recommendations
derived from a shopper's purchase history.
"""

import logging
import time
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.api.dependencies import (
    clear_store_cache,
    get_optional_extensions,
    get_store,
    load_store_if_needed,
)
from src.api.exceptions import CheckoutRecException
from src.api.metrics import metrics_service
from src.checkout.hooks import CheckoutExtensions, RecommendationBlock
from src.config import Settings, get_settings
from src.recommender.affinity import recommend_with_details
from src.recommender.store import CommerceStore

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests.

    Attributes:
        user_id: The user ID for which recommendations were generated.
        recommendations: Recommended product IDs, at most the configured limit.
        top_categories: Category IDs the candidates were drawn from.
        category_counts: Affinity counts, only when explain is requested.
    """

    user_id: int = Field(..., description="User ID for recommendations")
    recommendations: List[int] = Field(
        ..., description="List of recommended product IDs"
    )
    top_categories: List[int] = Field(
        default_factory=list, description="Top category IDs by affinity"
    )
    category_counts: Optional[Dict[int, int]] = Field(
        default=None, description="Category ID to occurrence count"
    )


class BlockResponse(BaseModel):
    """Recommendation block for the checkout page, null when omitted."""

    user_id: int
    block: Optional[RecommendationBlock] = None


@router.post("/reload-store")
def reload_store(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    """Reload the commerce store export from disk.

    Useful after a fresh export without restarting the server.
    """
    logger.info("Reloading commerce store...")
    clear_store_cache()
    load_store_if_needed(settings.DATA_DIR)
    return {"status": "Store reloaded successfully"}


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: int,
    explain: bool = False,
    store: CommerceStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> RecommendationResponse:
    """Get product recommendations for a user.

    Ranks the categories of the user's completed and processing orders and
    returns unpurchased products from the top ones. An empty list means
    nothing should be rendered.

    Raises:
        StoreUnavailableError: If the commerce store cannot be queried (503).

    Example:
        GET /recommend/42?explain=true
    """
    logger.info(f"Generating recommendations for user {user_id}")
    start_time = time.time()

    try:
        result = recommend_with_details(
            user_id,
            store,
            statuses=settings.QUALIFYING_STATUSES,
            top_n_categories=settings.TOP_CATEGORY_COUNT,
            limit=settings.RECOMMENDATION_LIMIT,
        )
    except CheckoutRecException:
        metrics_service.record_failure()
        raise
    except Exception as e:
        metrics_service.record_failure()
        logger.error(
            f"Error generating recommendations for user {user_id}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate recommendations: {str(e)}",
        )

    metrics_service.record_recommendation(
        (time.time() - start_time) * 1000, empty=not result.recommendations
    )

    return RecommendationResponse(
        user_id=user_id,
        recommendations=result.recommendations,
        top_categories=result.top_categories,
        category_counts=result.category_counts if explain else None,
    )


@router.get("/{user_id}/block", response_model=BlockResponse)
def get_recommendation_block(
    user_id: int,
    extensions: Optional[CheckoutExtensions] = Depends(get_optional_extensions),
) -> BlockResponse:
    """Get the "You Might Also Like" block with product display data.

    Failures of the recommender or the store omit the block rather than
    failing.
    """
    if extensions is None:
        return BlockResponse(user_id=user_id, block=None)

    return BlockResponse(
        user_id=user_id,
        block=extensions.before_customer_details(user_id),
    )
