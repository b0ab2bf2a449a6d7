"""
Recipe recommendation service.

Pipeline for one request:
1. Fetch the user's inventory and candidate recipes (up front, once)
2. Weight ingredients by expiry urgency and optional selection
3. Build the ingredient/recipe flow network and run max flow
4. Score every candidate from the flow and match annotations
5. Stretch, sort and truncate the scores

Algorithmic failures never reach the caller: the solver degrades to zero
flow and this service degrades to a heuristic ranking. Only data-source
failures propagate.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import date
from typing import Awaitable, Callable, Optional, Sequence

from pantry_rescue.models.inventory import InventoryRecord
from pantry_rescue.models.recipes import RecipeRecord, RecipeScoreResult, RecommendationOptions
from pantry_rescue.services.expiration import to_weighted_ingredients
from pantry_rescue.services.flow_network import (
    ANY_MEAL_TYPE,
    SINK,
    SOURCE,
    FlowNetwork,
    MatchEdgeInfo,
    Recipe,
    WeightedIngredient,
    build_flow_network,
    filter_by_meal_type,
    ingredient_vertex,
    meal_type_boost,
    recipe_vertex,
)
from pantry_rescue.services.matching import USAGE_MATCH_THRESHOLD
from pantry_rescue.services.max_flow import DEFAULT_MAX_PATHS, edmonds_karp
from pantry_rescue.services.quantities import quantity_factor
from pantry_rescue.services.scoring import (
    NutritionInfo,
    UsedIngredient,
    calculate_recipe_score,
    find_missed_ingredients,
    round_half_up,
)

logger = logging.getLogger(__name__)

InventorySource = Callable[[str], Awaitable[list[InventoryRecord]]]
RecipeSource = Callable[[str, int], Awaitable[list[RecipeRecord]]]

DEFAULT_COUNT = 5
DEFAULT_CANDIDATE_LIMIT = 1000
STRETCH_EXPONENT = 0.7


# ============================================================================
# Helpers
# ============================================================================

def initial_recipe_score(record: RecipeRecord, meal_type: str, rng: random.Random) -> float:
    """Randomized starting score, favoring the requested meal type and busier recipes."""
    base = rng.randint(40, 89)
    if record.meal_type == meal_type:
        boost = 1.5
    elif record.meal_type == ANY_MEAL_TYPE:
        boost = 1.2
    else:
        boost = 1.0
    complexity = 1 + (len(record.ingredients) % 5) * 0.1
    return base * boost * complexity


def stretch_scores(results: Sequence[RecipeScoreResult]) -> list[RecipeScoreResult]:
    """Spread close scores apart with a min-max rescale and a 0.7 power curve."""
    if not results:
        return []

    scores = [r.score for r in results]
    low, high = min(scores), max(scores)
    if low == high:
        return list(results)

    stretched = []
    for r in results:
        normalized = (r.score - low) / (high - low)
        score = round_half_up(low + math.pow(normalized, STRETCH_EXPONENT) * (high - low))
        stretched.append(r.model_copy(update={"score": min(100, score)}))
    return stretched


def _unscored_result(recipe: Recipe, score: int) -> RecipeScoreResult:
    return RecipeScoreResult(
        id=recipe.id,
        title=recipe.title,
        image=recipe.image,
        score=score,
        meal_type=recipe.meal_type or ANY_MEAL_TYPE,
        used_ingredients=[],
        missed_ingredients=list(recipe.ingredients),
        instructions=list(recipe.instructions),
        match_count=0,
        total_ingredients=len(recipe.ingredients),
        expiring_ingredients=0,
    )


# ============================================================================
# Service
# ============================================================================

class RecommendationService:
    """Ranks candidate recipes against a user's inventory."""

    def __init__(
        self,
        inventory_source: Optional[InventorySource] = None,
        recipe_source: Optional[RecipeSource] = None,
        rng: Optional[random.Random] = None,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
        max_paths: int = DEFAULT_MAX_PATHS,
        log: Optional[logging.Logger] = None,
    ):
        if inventory_source is None or recipe_source is None:
            from pantry_rescue.services import supabase

            inventory_source = inventory_source or supabase.get_user_ingredients
            recipe_source = recipe_source or supabase.get_candidate_recipes

        self.inventory_source = inventory_source
        self.recipe_source = recipe_source
        self.rng = rng or random.Random()
        self.candidate_limit = candidate_limit
        self.max_paths = max_paths
        self.log = log or logger

    async def recommend(
        self,
        user_id: str,
        options: Optional[RecommendationOptions] = None,
        count: int = DEFAULT_COUNT,
        as_of: Optional[date] = None,
    ) -> list[RecipeScoreResult]:
        """Get up to `count` recipes ranked for the user's inventory."""
        options = options or RecommendationOptions()
        self.log.info(
            f"Recommending {count} recipes for user {user_id[:8]} "
            f"(meal_type={options.meal_type}, prioritize_expiring={options.prioritize_expiring})"
        )

        inventory = await self.inventory_source(user_id)
        if not inventory:
            self.log.info("No ingredients in inventory, nothing to recommend")
            return []

        records = await self.recipe_source(options.meal_type, self.candidate_limit)
        records = [r for r in records if r.is_eligible]
        if not records:
            self.log.info(f"No eligible recipes for meal type {options.meal_type}")
            return []

        ingredients = to_weighted_ingredients(inventory, options, as_of=as_of, log=self.log)
        recipes = self.to_engine_recipes(records, options.meal_type)
        return self.rank(ingredients, recipes, options.meal_type, count)

    def to_engine_recipes(self, records: Sequence[RecipeRecord], meal_type: str) -> list[Recipe]:
        """Convert stored recipes to engine recipes with an initial score.

        Recipe ids key the network's vertices, so only the first recipe
        with a given id is kept.
        """
        recipes: dict[str, Recipe] = {}
        for r in records:
            if r.id in recipes:
                self.log.warning(f"Duplicate recipe id {r.id} ({r.title}), keeping {recipes[r.id].title}")
                continue
            recipes[r.id] = Recipe(
                id=r.id,
                title=r.title,
                image=r.image,
                ingredients=list(r.ingredients),
                instructions=list(r.instructions),
                meal_type=r.meal_type,
                score=initial_recipe_score(r, meal_type, self.rng),
            )
        return list(recipes.values())

    def rank(
        self,
        ingredients: Sequence[WeightedIngredient],
        recipes: Sequence[Recipe],
        meal_type: str = ANY_MEAL_TYPE,
        count: int = DEFAULT_COUNT,
    ) -> list[RecipeScoreResult]:
        """Run the flow/scoring engine. Falls back to a heuristic ranking on error."""
        count = max(0, count)
        try:
            network = build_flow_network(ingredients, recipes, meal_type, log=self.log)
            edmonds_karp(network, SOURCE, SINK, max_paths=self.max_paths, log=self.log)

            scored = [self._score(network, recipe, ingredients) for recipe in network.recipes]
            valid = [r for r in scored if r.used_ingredients]
            if not valid:
                self.log.info("No recipe uses any inventory item, using random fallback")
                valid = self._random_fallback(network.recipes, meal_type, count)

            ranked = sorted(stretch_scores(valid), key=lambda r: r.score, reverse=True)[:count]

        except Exception as e:
            self.log.error(f"Recommendation scoring failed, using heuristic fallback: {e}")
            return self._error_fallback(recipes, meal_type, count)

        for r in ranked:
            self.log.debug(
                f"- {r.title}: score={r.score}, used={len(r.used_ingredients)}, "
                f"missed={len(r.missed_ingredients)}"
            )
        return ranked

    def _score(
        self,
        network: FlowNetwork,
        recipe: Recipe,
        ingredients: Sequence[WeightedIngredient],
    ) -> RecipeScoreResult:
        """Attribute ingredients to a recipe from the solved network and score it."""
        head = recipe_vertex(recipe.id)
        used: list[UsedIngredient] = []
        seen: set[str] = set()

        for ingredient in ingredients:
            edge = network.get_edge(ingredient_vertex(ingredient.id), head)
            if edge is None or not isinstance(edge.info, MatchEdgeInfo):
                continue
            # Stricter than edge creation: positive flow or a strong match
            if edge.flow <= 0 and edge.info.match_quality < USAGE_MATCH_THRESHOLD:
                continue
            if ingredient.id in seen:
                continue
            seen.add(ingredient.id)

            quantity = ingredient.parsed_quantity
            used.append(UsedIngredient(
                id=ingredient.id,
                name=ingredient.name,
                days_until_expiry=ingredient.days_until_expiry,
                match_quality=edge.info.match_quality or USAGE_MATCH_THRESHOLD,
                matched_with=edge.info.matched_with,
                quantity=quantity,
                unit=ingredient.unit_or_default,
                quantity_factor=edge.info.quantity_factor or quantity_factor(quantity),
            ))

        boosts = network.nutrition_boosts(recipe.id)
        nutrition = NutritionInfo(
            categories=[c.value for c in boosts],
            boosts={c.value: b for c, b in boosts.items()},
        )
        boost = meal_type_boost(recipe.meal_type, network.preferred_meal_type)
        score = calculate_recipe_score(recipe, used, boost, nutrition, rng=self.rng, log=self.log)

        # Display names: the recipe's wording when matched, deduplicated
        used_names = list(dict.fromkeys(u.matched_with or u.name for u in used))

        return RecipeScoreResult(
            id=recipe.id,
            title=recipe.title,
            image=recipe.image,
            score=score,
            meal_type=recipe.meal_type or ANY_MEAL_TYPE,
            used_ingredients=used_names,
            missed_ingredients=find_missed_ingredients(recipe, used),
            instructions=list(recipe.instructions),
            match_count=len(used_names),
            total_ingredients=len(recipe.ingredients),
            expiring_ingredients=sum(1 for u in used if u.is_expiring),
        )

    def _random_fallback(
        self,
        recipes: Sequence[Recipe],
        meal_type: str,
        count: int,
    ) -> list[RecipeScoreResult]:
        """Random scores weighted toward the requested meal type."""
        results = []
        for recipe in recipes[:count]:
            boost = 2.5 if recipe.meal_type == meal_type else 1.2
            score = round_half_up(min(100, (self.rng.random() * 30 + 15) * boost))
            results.append(_unscored_result(recipe, score))
        return results

    def _error_fallback(
        self,
        recipes: Sequence[Recipe],
        meal_type: str,
        count: int,
    ) -> list[RecipeScoreResult]:
        """First `count` meal-type matches with a simple heuristic score."""
        results = []
        for recipe in filter_by_meal_type(recipes, meal_type)[:count]:
            base = (recipe.score or 0) * 10 or 25
            multiplier = 1.5 if recipe.meal_type == meal_type else 1.0
            results.append(_unscored_result(recipe, round_half_up(min(100, base * multiplier))))
        return results


# Singleton
_recommendation_service: Optional[RecommendationService] = None


def get_recommendation_service() -> RecommendationService:
    """Get recommendation service singleton."""
    global _recommendation_service
    if _recommendation_service is None:
        from pantry_rescue.config import get_settings

        settings = get_settings()
        _recommendation_service = RecommendationService(
            candidate_limit=settings.recipe_candidate_limit,
            max_paths=settings.max_augmenting_paths,
        )
    return _recommendation_service
