"""
Fuzzy matching between inventory item names and recipe ingredient lines.

Receipt-derived names ("Org Baby Spinach") and recipe-authored lines
("2 cups fresh spinach") rarely agree verbatim, so matching runs a
three-tier cascade per recipe line and keeps the best result:

1. Exact match after normalization -> 1.0
2. Containment in either direction -> 0.7 to 0.95 by length ratio
3. Shared significant word          -> 0.6 to 0.9 by word length
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# Minimum quality for an ingredient -> recipe edge in the flow network
EDGE_MATCH_THRESHOLD = 0.6

# Minimum quality for counting an ingredient as "used" without flow
USAGE_MATCH_THRESHOLD = 0.7

_WHITESPACE_RE = re.compile(r"\s+")
_FILLER_RE = re.compile(r"\b(of|the|and|&)\b")
_PUNCTUATION_RE = re.compile(r"[.,;:!?'\"()]")


@dataclass(frozen=True)
class IngredientMatch:
    """Best recipe line for an inventory item."""
    best_match: Optional[str]
    quality: float


def normalize_ingredient(name: str) -> str:
    """Lowercase, collapse whitespace, drop filler words and punctuation."""
    text = _WHITESPACE_RE.sub(" ", (name or "").lower())
    text = _FILLER_RE.sub("", text)
    text = _PUNCTUATION_RE.sub("", text)
    return text.strip()


def _significant_words(text: str) -> list[str]:
    return [w for w in text.split(" ") if len(w) > 2]


def match_quality(inventory_normalized: str, recipe_normalized: str) -> float:
    """Quality of a single normalized pair, first applicable tier wins."""
    if not inventory_normalized or not recipe_normalized:
        return 0.0

    if inventory_normalized == recipe_normalized:
        return 1.0

    if inventory_normalized in recipe_normalized or recipe_normalized in inventory_normalized:
        shorter, longer = sorted((len(inventory_normalized), len(recipe_normalized)))
        return 0.7 + (shorter / longer) * 0.25

    quality = 0.0
    recipe_words = _significant_words(recipe_normalized)
    for inventory_word in _significant_words(inventory_normalized):
        for recipe_word in recipe_words:
            if (
                inventory_word == recipe_word
                or (len(inventory_word) > 4 and inventory_word in recipe_word)
                or (len(recipe_word) > 4 and recipe_word in inventory_word)
            ):
                quality = max(quality, min(0.9, 0.6 + len(inventory_word) * 0.05))
    return quality


def find_best_match(
    inventory_name: str,
    recipe_ingredients: Sequence[str],
    log: Optional[logging.Logger] = None,
) -> IngredientMatch:
    """Find the recipe ingredient line that best matches an inventory item."""
    log = log or logger
    inventory_normalized = normalize_ingredient(inventory_name)

    best_match: Optional[str] = None
    best_quality = 0.0

    for recipe_ingredient in recipe_ingredients:
        quality = match_quality(inventory_normalized, normalize_ingredient(recipe_ingredient))
        if quality > best_quality:
            best_quality = quality
            best_match = recipe_ingredient

    if best_match is not None:
        log.debug(f"Best match for '{inventory_name}': '{best_match}' (quality {best_quality:.2f})")

    return IngredientMatch(best_match=best_match, quality=best_quality)
