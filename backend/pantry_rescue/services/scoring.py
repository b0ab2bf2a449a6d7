"""
Recipe scoring.

Turns the ingredients attributed to a recipe into a bounded 0-100 score.
A single linear formula cannot at the same time always prefer recipes
that use expiring items, always punish sparse matches and keep imperfect
matches away from the top, so the score is layered:

- a weighted base (ingredient count, match quality, coverage, expiry,
  meal type, nutrition)
- a superlinear penalty for missing ingredients
- bonuses and penalties for perfect, tiny and expiry-heavy matches
- a floor for recipes that rescue many expiring items
- a ceiling that depends on coverage and on how many items are expiring

The constants are empirically tuned.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence

from pantry_rescue.services.flow_network import EXPIRING_WITHIN_DAYS, Recipe

logger = logging.getLogger(__name__)

DEFAULT_BASE_SCORE = 15
NO_MATCH_SCORE_CAP = 25
PERFECT_MATCH_BONUS = 12
MIN_USED_INGREDIENTS = 3
FEW_INGREDIENTS_PENALTY = 15
MANY_EXPIRING_BONUS = 15
EXPIRING_ITEM_BONUS = 3


@dataclass
class UsedIngredient:
    """An inventory item attributed to a recipe."""
    id: str
    name: str
    days_until_expiry: int
    match_quality: float
    matched_with: Optional[str]
    quantity: float
    unit: str
    quantity_factor: float

    @property
    def is_expiring(self) -> bool:
        return self.days_until_expiry <= EXPIRING_WITHIN_DAYS


@dataclass
class NutritionInfo:
    """Nutrition categories hit by a recipe and their boosts."""
    categories: list[str] = field(default_factory=list)
    boosts: dict[str, float] = field(default_factory=dict)


def round_half_up(value: float) -> int:
    """Round halves up rather than to even."""
    return math.floor(value + 0.5)


def find_missed_ingredients(recipe: Recipe, used: Sequence[UsedIngredient]) -> list[str]:
    """Recipe lines not covered by any used ingredient's matched line."""
    covered = {(u.matched_with or "").lower() for u in used}
    return [line for line in recipe.ingredients if line.lower() not in covered]


def calculate_recipe_score(
    recipe: Recipe,
    used: Sequence[UsedIngredient],
    meal_type_boost: float,
    nutrition: Optional[NutritionInfo] = None,
    rng: Optional[random.Random] = None,
    log: Optional[logging.Logger] = None,
) -> int:
    """Score a recipe from its used ingredients. Returns an int in [0, 100]."""
    log = log or logger
    rng = rng or random.Random()
    nutrition = nutrition or NutritionInfo()
    total = len(recipe.ingredients)

    if not used:
        base = recipe.score * 1.5 if recipe.score else DEFAULT_BASE_SCORE
        return round_half_up(max(0.0, min(NO_MATCH_SCORE_CAP, base * meal_type_boost)))

    used_count = len(used)
    expiring = [u for u in used if u.is_expiring]
    missed = find_missed_ingredients(recipe, used)

    avg_quality = sum(u.match_quality or 0 for u in used) / used_count
    is_perfect = not missed and used_count >= total
    coverage = used_count / max(1, total)
    expiry_ratio = len(expiring) / max(1, used_count)

    # Ceiling: more expiring items lift the cap, imperfect matches sit below it
    expiry_max = 70 + min(30, len(expiring) * 10)
    if is_perfect:
        max_score = min(100, expiry_max)
    else:
        max_score = min(
            expiry_max - 8,
            60 + round_half_up(coverage * 32) - len(missed) * 3,
        )
    max_score = max(0, max_score)

    quality_score = 10 * avg_quality

    # Per-item expiry bonus shrinks for large recipes
    per_item = min(7.5, 15 / max(1, total))
    expiry_bonus = len(expiring) * per_item + expiry_ratio * 20

    coverage_bonus = 20 * math.pow(coverage, 1.25)
    meal_type_bonus = 15 * (meal_type_boost - 1.0)
    nutrition_bonus = sum(
        nutrition.boosts.get(category, 1.0) * 4 for category in nutrition.categories
    )

    missing_ratio = len(missed) / max(1, total)
    missing_penalty = math.pow(len(missed) * 3.5, min(2, 1 + missing_ratio))

    score = (
        15 * min(1, used_count / 3)
        + quality_score
        + 8 * min(1, coverage * 1.5)
        + expiry_bonus
        + coverage_bonus
        + meal_type_bonus
        + nutrition_bonus
    )
    score -= missing_penalty

    if is_perfect:
        score += PERFECT_MATCH_BONUS
    if used_count < MIN_USED_INGREDIENTS:
        score -= (MIN_USED_INGREDIENTS - used_count) * FEW_INGREDIENTS_PENALTY
    if len(expiring) >= 3:
        score += MANY_EXPIRING_BONUS

    # Tie-breaking only
    jitter = rng.random() * 2 - 1

    # Recipes rescuing lots of urgent stock never drop too low
    critical_floor = min(
        75 if is_perfect else 70 - len(missed) * 2,
        len(expiring) * min(8.5, 25 / max(1, total))
        + math.sqrt(max(0.0, sum(u.quantity or 1 for u in expiring))) * 2.5,
    )
    score = max(critical_floor, score) + jitter

    if meal_type_boost > 2.0:
        score *= 1.1
    score += len(expiring) * EXPIRING_ITEM_BONUS

    final = min(max_score, max(0, round_half_up(score)))
    log.debug(
        f"Scored {recipe.title}: {final} (used={used_count}, missed={len(missed)}, "
        f"expiring={len(expiring)}, perfect={is_perfect}, cap={max_score})"
    )
    return final
