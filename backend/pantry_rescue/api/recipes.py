"""
Recipe API endpoints.

Provides recipe browsing and inventory-based recommendations.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from pantry_rescue.api.deps import get_current_user_id, get_recommendation_options
from pantry_rescue.config import get_settings
from pantry_rescue.models.recipes import (
    MealType,
    RecipeListResponse,
    RecipeRecord,
    RecipeScoreResult,
    RecommendationOptions,
)
from pantry_rescue.services.recommendations import (
    RecommendationService,
    get_recommendation_service,
)
from pantry_rescue.services.supabase import get_recipe, list_recipes, total_pages

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


@router.get("", response_model=RecipeListResponse)
async def get_recipes(
    meal_type: Optional[MealType] = Query(None, description="Filter by meal type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
):
    """List recipes sorted by title, with pagination."""
    try:
        recipes, total = await list_recipes(
            meal_type=meal_type.value if meal_type else None,
            page=page,
            limit=limit,
            search=search,
        )
    except Exception as e:
        logger.error(f"Error fetching recipes: {e}")
        raise HTTPException(status_code=500, detail="Error fetching recipes")

    return RecipeListResponse(
        recipes=recipes,
        current_page=page,
        total_pages=total_pages(total, limit),
        total_recipes=total,
    )


@router.get("/recommended", response_model=list[RecipeScoreResult])
async def get_recommended_recipes(
    user_id: str = Depends(get_current_user_id),
    options: RecommendationOptions = Depends(get_recommendation_options),
    count: Optional[int] = Query(None, ge=1, description="Number of recipes to return"),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    Recommend recipes for the user's inventory.

    Recipes that use ingredients close to expiry rank first. Passing
    include_ingredients restricts the inventory to matching items and
    boosts them further.
    """
    settings = get_settings()
    count = count or settings.default_recommendation_count
    if count > settings.max_recommendation_count:
        raise HTTPException(
            status_code=422,
            detail=f"count must be at most {settings.max_recommendation_count}",
        )

    try:
        return await service.recommend(user_id, options, count)
    except Exception as e:
        logger.error(f"Error getting recommended recipes: {e}")
        raise HTTPException(status_code=500, detail="Error getting recommended recipes")


@router.get("/{recipe_id}", response_model=RecipeRecord)
async def get_recipe_by_id(recipe_id: str):
    """Get a single recipe."""
    try:
        recipe = await get_recipe(recipe_id)
    except Exception as e:
        logger.error(f"Error fetching recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Error fetching recipe")

    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe
