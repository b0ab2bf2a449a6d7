"""
Flow network construction for recipe recommendations.

The network is a layered directed graph:

    source -> ingredient -> recipe -> sink
                 nutrition category -> recipe
                       balanced meal -> recipe

Source edges carry the (normalized) inventory quantity, ingredient ->
recipe edges exist only for fuzzy matches above EDGE_MATCH_THRESHOLD,
and recipe -> sink edges are sized by how much of the recipe the
inventory covers. Nutrition and balanced-meal vertices annotate recipes
for the scorer; they are not reachable from the source.

Every edge owns a typed annotation for its layer and a reference to its
reverse (residual) counterpart, so the solver can cancel flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Sequence, Union

from pantry_rescue.services.matching import EDGE_MATCH_THRESHOLD, find_best_match
from pantry_rescue.services.quantities import (
    DEFAULT_UNIT,
    normalize_quantity,
    parse_quantity,
    quantity_factor,
)

logger = logging.getLogger(__name__)

ANY_MEAL_TYPE = "any"
NO_EXPIRY_DAYS = 999

# Binary urgency: "expiring" means at most this many days left
EXPIRING_WITHIN_DAYS = 7
EXPIRING_FACTOR = 5.0
NORMAL_FACTOR = 1.0

EXACT_MEAL_TYPE_BOOST = 2.5
ANY_MEAL_TYPE_BOOST = 1.2
MISMATCHED_MEAL_TYPE_BOOST = 0.8


# ============================================================================
# Engine Inputs
# ============================================================================

@dataclass
class WeightedIngredient:
    """An inventory item weighted for a single recommendation pass."""
    id: str
    name: str
    weight: float
    days_until_expiry: int = NO_EXPIRY_DAYS
    quantity: Union[float, str, None] = None  # Raw inventory value
    unit: Optional[str] = None

    @property
    def parsed_quantity(self) -> float:
        return parse_quantity(self.quantity)

    @property
    def unit_or_default(self) -> str:
        return self.unit or DEFAULT_UNIT

    @property
    def normalized_quantity(self) -> float:
        return normalize_quantity(self.parsed_quantity, self.unit_or_default)

    @property
    def is_expiring(self) -> bool:
        return self.days_until_expiry <= EXPIRING_WITHIN_DAYS


@dataclass
class Recipe:
    """Candidate recipe in the shape the engine works with."""
    id: str
    title: str
    ingredients: list[str]
    instructions: list[str]
    meal_type: str = ANY_MEAL_TYPE
    image: Optional[str] = None
    score: Optional[float] = None  # Initial heuristic score


def expiry_factor(days_until_expiry: int) -> float:
    """5x for items expiring within a week, 1x otherwise."""
    return EXPIRING_FACTOR if days_until_expiry <= EXPIRING_WITHIN_DAYS else NORMAL_FACTOR


def meal_type_boost(recipe_meal_type: str, preferred_meal_type: str) -> float:
    """Reward exact meal-type matches, mildly reward "any", penalize the rest."""
    if recipe_meal_type == preferred_meal_type:
        return EXACT_MEAL_TYPE_BOOST
    if recipe_meal_type == ANY_MEAL_TYPE:
        return ANY_MEAL_TYPE_BOOST
    return MISMATCHED_MEAL_TYPE_BOOST


def filter_by_meal_type(recipes: Sequence[Recipe], preferred_meal_type: str) -> list[Recipe]:
    """Keep recipes for the preferred meal type plus those tagged "any"."""
    if preferred_meal_type == ANY_MEAL_TYPE:
        return list(recipes)
    return [
        r for r in recipes
        if r.meal_type == preferred_meal_type or r.meal_type == ANY_MEAL_TYPE
    ]


# ============================================================================
# Nutrition Classification
# ============================================================================

class NutritionCategory(str, Enum):
    """Nutrition groups used for the balance bonus."""
    PROTEIN = "protein"
    VEGETABLES = "vegetables"
    GRAINS = "grains"
    DAIRY = "dairy"


NUTRITION_KEYWORDS: dict[NutritionCategory, tuple[str, ...]] = {
    NutritionCategory.PROTEIN: (
        "meat", "chicken", "beef", "pork", "fish", "tofu", "lentil", "bean",
        "egg", "nuts", "seed", "protein",
    ),
    NutritionCategory.VEGETABLES: (
        "vegetable", "carrot", "broccoli", "spinach", "kale", "tomato", "pepper",
        "onion", "lettuce", "cabbage", "zucchini", "eggplant", "cucumber", "avocado",
    ),
    NutritionCategory.GRAINS: (
        "rice", "pasta", "bread", "flour", "oat", "grain", "wheat", "quinoa",
        "barley", "cereal", "corn", "couscous", "tortilla",
    ),
    NutritionCategory.DAIRY: (
        "milk", "cheese", "yogurt", "cream", "butter", "dairy", "cheddar",
        "mozzarella", "parmesan",
    ),
}

MAX_NUTRITION_BOOST = 1.5
MIN_BALANCED_CATEGORIES = 2


def classify_nutrition(recipe_ingredients: Sequence[str]) -> dict[NutritionCategory, int]:
    """Count recipe lines hitting each nutrition category's keywords."""
    lowered = [line.lower() for line in recipe_ingredients]
    hits: dict[NutritionCategory, int] = {}
    for category, keywords in NUTRITION_KEYWORDS.items():
        count = sum(1 for line in lowered if any(k in line for k in keywords))
        if count > 0:
            hits[category] = count
    return hits


def nutrition_boost(hit_count: int) -> float:
    return min(MAX_NUTRITION_BOOST, 0.8 + hit_count * 0.2)


def balanced_meal_boost(categories_present: int) -> float:
    """1.4 for two categories, up to 1.8 for all four."""
    return 1.0 + categories_present * 0.2


# ============================================================================
# Graph Structures
# ============================================================================

class VertexKind(str, Enum):
    SOURCE = "source"
    SINK = "sink"
    INGREDIENT = "ingredient"
    RECIPE = "recipe"
    NUTRITION = "nutrition"
    BALANCED_MEAL = "balanced_meal"


@dataclass(frozen=True)
class Vertex:
    """Typed vertex identity: kind plus the id of the thing it stands for."""
    kind: VertexKind
    key: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.key}" if self.key else self.kind.value


SOURCE = Vertex(VertexKind.SOURCE)
SINK = Vertex(VertexKind.SINK)
BALANCED_MEAL = Vertex(VertexKind.BALANCED_MEAL)


def ingredient_vertex(ingredient_id: str) -> Vertex:
    return Vertex(VertexKind.INGREDIENT, ingredient_id)


def recipe_vertex(recipe_id: str) -> Vertex:
    return Vertex(VertexKind.RECIPE, recipe_id)


def nutrition_vertex(category: NutritionCategory) -> Vertex:
    return Vertex(VertexKind.NUTRITION, category.value)


@dataclass(frozen=True)
class SourceEdgeInfo:
    """source -> ingredient"""
    expiry_weight: float
    normalized_quantity: float
    days_until_expiry: int


@dataclass(frozen=True)
class MatchEdgeInfo:
    """ingredient -> recipe"""
    expiry_weight: float  # Adjusted weight combining expiry, match, meal type, quantity
    match_quality: float
    matched_with: Optional[str]
    quantity: float
    unit: str
    quantity_factor: float


@dataclass(frozen=True)
class SinkEdgeInfo:
    """recipe -> sink"""
    recipe_score: float
    matched_count: int
    total_ingredients: int
    coverage_ratio: float
    meal_type_boost: float
    total_importance: float
    matched_ingredients: tuple[str, ...] = ()


@dataclass(frozen=True)
class NutritionEdgeInfo:
    """nutrition category -> recipe"""
    category: NutritionCategory
    nutrition_boost: float


@dataclass(frozen=True)
class BalancedMealEdgeInfo:
    """balanced meal -> recipe"""
    categories_present: int
    balanced_meal_boost: float


@dataclass(frozen=True)
class ResidualEdgeInfo:
    """Synthesized reverse edge with no capacity of its own."""


EdgeInfo = Union[
    SourceEdgeInfo,
    MatchEdgeInfo,
    SinkEdgeInfo,
    NutritionEdgeInfo,
    BalancedMealEdgeInfo,
    ResidualEdgeInfo,
]


@dataclass(eq=False)
class FlowEdge:
    """Directed edge owned by its tail vertex."""
    tail: Vertex
    head: Vertex
    capacity: float
    info: EdgeInfo
    flow: float = 0.0
    reverse: Optional[FlowEdge] = field(default=None, repr=False)

    @property
    def residual_capacity(self) -> float:
        return self.capacity - self.flow

    @property
    def is_residual(self) -> bool:
        return isinstance(self.info, ResidualEdgeInfo)


class FlowNetwork:
    """Adjacency-list flow network with typed vertices and edges."""

    def __init__(self, preferred_meal_type: str = ANY_MEAL_TYPE):
        self.preferred_meal_type = preferred_meal_type
        self.recipes: list[Recipe] = []
        self.adjacency: dict[Vertex, list[FlowEdge]] = {}
        self._index: dict[tuple[Vertex, Vertex], FlowEdge] = {}

    @property
    def vertices(self) -> list[Vertex]:
        return list(self.adjacency)

    def add_vertex(self, vertex: Vertex) -> None:
        self.adjacency.setdefault(vertex, [])

    def _attach(self, edge: FlowEdge) -> FlowEdge:
        self.add_vertex(edge.tail)
        self.add_vertex(edge.head)
        self.adjacency[edge.tail].append(edge)
        self._index[(edge.tail, edge.head)] = edge
        return edge

    def add_edge(self, tail: Vertex, head: Vertex, capacity: float, info: EdgeInfo) -> FlowEdge:
        """Add (or replace) an edge and make sure its reverse exists."""
        edge = self._index.get((tail, head))
        if edge is None:
            edge = self._attach(FlowEdge(tail=tail, head=head, capacity=capacity, info=info))
        else:
            # Either a placeholder residual edge or a rebuilt edge; keep its pairing
            edge.capacity = capacity
            edge.info = info

        if edge.reverse is None:
            reverse = self._index.get((head, tail))
            if reverse is None:
                reverse = self._attach(
                    FlowEdge(tail=head, head=tail, capacity=0.0, info=ResidualEdgeInfo())
                )
            edge.reverse = reverse
            reverse.reverse = edge
        return edge

    def get_edge(self, tail: Vertex, head: Vertex) -> Optional[FlowEdge]:
        """Look up a non-residual edge."""
        edge = self._index.get((tail, head))
        if edge is None or edge.is_residual:
            return None
        return edge

    def edges_from(self, vertex: Vertex) -> list[FlowEdge]:
        """All edges owned by a vertex, residual ones included."""
        return self.adjacency.get(vertex, [])

    def edges(self) -> Iterator[FlowEdge]:
        """Iterate over all non-residual edges."""
        for owned in self.adjacency.values():
            for edge in owned:
                if not edge.is_residual:
                    yield edge

    def source_capacity(self) -> float:
        """Total capacity leaving the source."""
        return sum(e.capacity for e in self.edges_from(SOURCE) if not e.is_residual)

    def reset_flows(self) -> None:
        for owned in self.adjacency.values():
            for edge in owned:
                edge.flow = 0.0

    def nutrition_boosts(self, recipe_id: str) -> dict[NutritionCategory, float]:
        """Nutrition categories attached to a recipe, with their boosts."""
        head = recipe_vertex(recipe_id)
        boosts: dict[NutritionCategory, float] = {}
        for category in NutritionCategory:
            edge = self.get_edge(nutrition_vertex(category), head)
            if edge is not None and isinstance(edge.info, NutritionEdgeInfo):
                boosts[category] = edge.info.nutrition_boost
        return boosts


# ============================================================================
# Builder
# ============================================================================

@dataclass
class _MatchedIngredient:
    ingredient: WeightedIngredient
    adjusted_weight: float
    match_quality: float
    matched_with: Optional[str]
    quantity_factor: float


def calculate_ingredient_weight(
    base_weight: float,
    expiry: float,
    quality: float,
    boost: float,
    qty_factor: float,
) -> float:
    """Edge weight for an ingredient -> recipe match."""
    return (
        base_weight * 0.2
        + expiry * 0.45
        + quality * 0.15
        + boost * 0.2 * qty_factor
    )


def calculate_recipe_importance(
    matched: Sequence[_MatchedIngredient],
    boost: float,
    total_ingredients: int,
) -> float:
    """Urgency-weighted importance of a recipe given its matched ingredients."""
    if not matched:
        return 0.1 * boost

    total_urgency = 0.0
    for m in matched:
        urgency = max(1, 10 - (m.ingredient.days_until_expiry or 0))
        total_urgency += (m.adjusted_weight or 1) * (urgency / 10)

    match_percentage = len(matched) / total_ingredients
    return (total_urgency * 0.6 + match_percentage * 0.4) * boost


def build_flow_network(
    ingredients: Sequence[WeightedIngredient],
    recipes: Sequence[Recipe],
    preferred_meal_type: str = ANY_MEAL_TYPE,
    log: Optional[logging.Logger] = None,
) -> FlowNetwork:
    """Build the ingredient/recipe flow network for one recommendation pass."""
    log = log or logger
    network = FlowNetwork(preferred_meal_type)
    network.add_vertex(SOURCE)
    network.add_vertex(SINK)

    for ingredient in ingredients:
        network.add_vertex(ingredient_vertex(ingredient.id))

    network.recipes = filter_by_meal_type(recipes, preferred_meal_type)
    for recipe in network.recipes:
        network.add_vertex(recipe_vertex(recipe.id))

    # Source -> ingredient, sized by how much we have
    for ingredient in ingredients:
        normalized = ingredient.normalized_quantity
        network.add_edge(
            SOURCE,
            ingredient_vertex(ingredient.id),
            normalized,
            SourceEdgeInfo(
                expiry_weight=ingredient.weight * expiry_factor(ingredient.days_until_expiry),
                normalized_quantity=normalized,
                days_until_expiry=ingredient.days_until_expiry,
            ),
        )

    for recipe in network.recipes:
        _connect_recipe(network, recipe, ingredients, log)

    _add_nutrition_vertices(network, log)

    log.debug(
        f"Built flow network: {len(network.adjacency)} vertices, "
        f"{sum(1 for _ in network.edges())} edges, {len(network.recipes)} recipes"
    )
    return network


def _connect_recipe(
    network: FlowNetwork,
    recipe: Recipe,
    ingredients: Sequence[WeightedIngredient],
    log: logging.Logger,
) -> None:
    """Add ingredient -> recipe edges for matches and the recipe -> sink edge."""
    head = recipe_vertex(recipe.id)
    boost = meal_type_boost(recipe.meal_type, network.preferred_meal_type)
    matched: list[_MatchedIngredient] = []

    for ingredient in ingredients:
        match = find_best_match(ingredient.name.lower(), recipe.ingredients, log)
        if match.quality < EDGE_MATCH_THRESHOLD:
            continue

        normalized = ingredient.normalized_quantity
        factor = expiry_factor(ingredient.days_until_expiry)
        qty_factor = quantity_factor(normalized)
        adjusted = calculate_ingredient_weight(
            ingredient.weight, factor, match.quality, boost, qty_factor
        )

        network.add_edge(
            ingredient_vertex(ingredient.id),
            head,
            normalized,
            MatchEdgeInfo(
                expiry_weight=adjusted,
                match_quality=match.quality,
                matched_with=match.best_match,
                quantity=ingredient.parsed_quantity,
                unit=ingredient.unit_or_default,
                quantity_factor=qty_factor,
            ),
        )
        matched.append(_MatchedIngredient(
            ingredient=ingredient,
            adjusted_weight=adjusted,
            match_quality=match.quality,
            matched_with=match.best_match,
            quantity_factor=qty_factor,
        ))

    total = len(recipe.ingredients) or 1
    coverage = min(1.0, len(matched) / total)

    network.add_edge(
        head,
        SINK,
        coverage * 100,
        SinkEdgeInfo(
            recipe_score=recipe.score or 0,
            matched_count=len(matched),
            total_ingredients=total,
            coverage_ratio=coverage,
            meal_type_boost=boost,
            total_importance=calculate_recipe_importance(matched, boost, total),
            matched_ingredients=tuple(m.ingredient.name for m in matched),
        ),
    )


def _add_nutrition_vertices(network: FlowNetwork, log: logging.Logger) -> None:
    """Attach nutrition-category and balanced-meal vertices to recipes."""
    for category in NutritionCategory:
        network.add_vertex(nutrition_vertex(category))
    network.add_vertex(BALANCED_MEAL)

    for recipe in network.recipes:
        head = recipe_vertex(recipe.id)
        hits = classify_nutrition(recipe.ingredients)

        for category, count in hits.items():
            network.add_edge(
                nutrition_vertex(category),
                head,
                count,
                NutritionEdgeInfo(category=category, nutrition_boost=nutrition_boost(count)),
            )

        if len(hits) >= MIN_BALANCED_CATEGORIES:
            boost = balanced_meal_boost(len(hits))
            network.add_edge(
                BALANCED_MEAL,
                head,
                len(hits),
                BalancedMealEdgeInfo(categories_present=len(hits), balanced_meal_boost=boost),
            )
            log.debug(
                f"Recipe {recipe.title} spans {len(hits)} nutrition categories "
                f"(balanced meal boost {boost:.1f})"
            )
