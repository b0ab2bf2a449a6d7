"""
Common dependencies for API endpoints.
"""

from typing import Optional

from fastapi import Query, HTTPException

from pantry_rescue.models.recipes import MealType, RecommendationOptions


async def get_current_user_id(user_id: str = Query(..., description="User ID")) -> str:
    """
    Read the caller's user_id from the query string.

    Authentication happens upstream; whoever calls us has already
    resolved the user and only needs their inventory looked up.
    """
    user_id = user_id.strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    return user_id


def parse_ingredient_list(raw: Optional[str]) -> Optional[list[str]]:
    """Split a comma-separated ingredient list, None when empty."""
    if not raw:
        return None
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return names or None


async def get_recommendation_options(
    meal_type: MealType = Query(MealType.ANY, description="Preferred meal type"),
    prioritize_expiring: bool = Query(True, description="Weight expiring items more heavily"),
    include_ingredients: Optional[str] = Query(
        None, description="Comma-separated ingredient names to build around"
    ),
) -> RecommendationOptions:
    return RecommendationOptions(
        meal_type=meal_type.value,
        prioritize_expiring=prioritize_expiring,
        selected_ingredients=parse_ingredient_list(include_ingredients),
    )
