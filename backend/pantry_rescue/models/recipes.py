"""Recipe and recommendation Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MealType(str, Enum):
    """Meal types a recipe can be tagged with."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    DESSERT = "dessert"
    ANY = "any"


class RecipeRecord(BaseModel):
    """A candidate recipe as supplied by the recipe store."""

    id: str
    title: str
    image: Optional[str] = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    meal_type: str = MealType.ANY.value

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value)

    @field_validator("meal_type", mode="before")
    @classmethod
    def _default_meal_type(cls, value):
        # Unknown or missing tags count as "any"
        if isinstance(value, MealType):
            return value.value
        normalized = str(value or "").strip().lower()
        if normalized in {m.value for m in MealType}:
            return normalized
        return MealType.ANY.value

    @property
    def is_eligible(self) -> bool:
        """Recipes need both ingredients and instructions to be recommended."""
        return bool(self.ingredients) and bool(self.instructions)


class RecommendationOptions(BaseModel):
    """Options for a single recommendation request."""

    meal_type: str = MealType.ANY.value
    prioritize_expiring: bool = True
    selected_ingredients: Optional[list[str]] = None


class RecipeScoreResult(BaseModel):
    """A ranked recipe recommendation."""

    id: str
    title: str
    image: Optional[str] = None
    score: int = Field(ge=0, le=100)
    meal_type: str = MealType.ANY.value
    used_ingredients: list[str] = Field(default_factory=list)
    missed_ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)

    # Display metadata
    match_count: int = 0
    total_ingredients: int = 0
    expiring_ingredients: int = 0


class RecipeListResponse(BaseModel):
    """Paginated recipe listing."""

    recipes: list[RecipeRecord] = Field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total_recipes: int = 0
