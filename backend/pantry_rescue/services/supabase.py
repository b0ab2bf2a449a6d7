"""Supabase client service and inventory/recipe queries."""

import logging
import math
import time
from functools import lru_cache
from typing import Optional

from pydantic import ValidationError
from supabase import create_client, Client

from pantry_rescue.config import get_settings
from pantry_rescue.models.inventory import InventoryRecord
from pantry_rescue.models.recipes import RecipeRecord

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase_client() -> Client:
    """Get Supabase client with service role key (admin access)."""
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
    )


def get_tables() -> dict[str, str]:
    """Table names, overridable through settings."""
    settings = get_settings()
    return {
        "ingredients": settings.ingredients_table,
        "recipes": settings.recipes_table,
    }


async def get_user_ingredients(user_id: str) -> list[InventoryRecord]:
    """Get a user's inventory snapshot."""
    client = get_supabase_client()
    result = (
        client.table(get_tables()["ingredients"])
        .select("*")
        .eq("user_id", user_id)
        .execute()
    )

    records = []
    for row in result.data or []:
        try:
            records.append(InventoryRecord.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable inventory row {row.get('id')}: {e.error_count()} errors")
    return records


async def get_candidate_recipes(meal_type: str = "any", limit: int = 1000) -> list[RecipeRecord]:
    """Get candidate recipes for a meal type (plus those tagged "any")."""
    client = get_supabase_client()
    query = client.table(get_tables()["recipes"]).select("*")
    if meal_type != "any":
        query = query.in_("meal_type", [meal_type, "any"])
    result = query.limit(limit).execute()
    return [RecipeRecord.model_validate(row) for row in result.data or []]


async def list_recipes(
    meal_type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
) -> tuple[list[RecipeRecord], int]:
    """Get a page of recipes sorted by title, with the total match count."""
    client = get_supabase_client()
    query = client.table(get_tables()["recipes"]).select("*", count="exact")
    if meal_type and meal_type != "any":
        query = query.eq("meal_type", meal_type)
    if search:
        query = query.ilike("title", f"%{search}%")

    start = (page - 1) * limit
    result = query.order("title").range(start, start + limit - 1).execute()

    recipes = [RecipeRecord.model_validate(row) for row in result.data or []]
    total = result.count if result.count is not None else len(recipes)
    return recipes, total


async def get_recipe(recipe_id: str) -> Optional[RecipeRecord]:
    """Get a single recipe by ID."""
    client = get_supabase_client()
    result = (
        client.table(get_tables()["recipes"])
        .select("*")
        .eq("id", recipe_id)
        .limit(1)
        .execute()
    )
    rows = result.data or []
    return RecipeRecord.model_validate(rows[0]) if rows else None


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


async def ping_recipe_store() -> float:
    """Run a trivial recipes query. Returns latency in milliseconds."""
    client = get_supabase_client()
    start = time.perf_counter()
    client.table(get_tables()["recipes"]).select("id").limit(1).execute()
    return (time.perf_counter() - start) * 1000
