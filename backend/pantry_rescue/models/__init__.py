"""Pydantic models for pantry-rescue API."""

from .inventory import (
    IngredientCategory,
    InventoryRecord,
)
from .recipes import (
    MealType,
    RecipeRecord,
    RecommendationOptions,
    RecipeScoreResult,
    RecipeListResponse,
)

__all__ = [
    # Inventory
    "IngredientCategory",
    "InventoryRecord",
    # Recipes
    "MealType",
    "RecipeRecord",
    "RecommendationOptions",
    "RecipeScoreResult",
    "RecipeListResponse",
]
