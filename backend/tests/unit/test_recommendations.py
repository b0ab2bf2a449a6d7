"""
Unit tests for the recommendation service.
"""

import random
from unittest.mock import AsyncMock

import pytest

from pantry_rescue.models.recipes import RecipeScoreResult, RecommendationOptions
from pantry_rescue.services import recommendations
from pantry_rescue.services.flow_network import Recipe, WeightedIngredient
from pantry_rescue.services.recommendations import (
    RecommendationService,
    get_recommendation_service,
    initial_recipe_score,
    stretch_scores,
)


def _result(recipe_id, score):
    return RecipeScoreResult(id=recipe_id, title=recipe_id, score=score)


class TestStretchScores:
    """Tests for score spreading."""

    @pytest.mark.unit
    def test_endpoints_fixed_middle_lifted(self):
        stretched = stretch_scores([_result("a", 10), _result("b", 20), _result("c", 30)])
        assert [r.score for r in stretched] == [10, 22, 30]

    @pytest.mark.unit
    def test_identical_scores_unchanged(self):
        stretched = stretch_scores([_result("a", 42), _result("b", 42)])
        assert [r.score for r in stretched] == [42, 42]

    @pytest.mark.unit
    def test_empty(self):
        assert stretch_scores([]) == []


class TestInitialRecipeScore:
    """Tests for the randomized starting score."""

    @pytest.mark.unit
    def test_range(self, make_recipe_record):
        rng = random.Random(7)
        exact = make_recipe_record("1", "Soup", ["a", "b", "c", "d", "e"], meal_type="dinner")
        other = make_recipe_record("2", "Toast", ["a", "b", "c", "d", "e"], meal_type="breakfast")
        for _ in range(50):
            assert 60 <= initial_recipe_score(exact, "dinner", rng) <= 133.5
            assert 40 <= initial_recipe_score(other, "dinner", rng) <= 89

    @pytest.mark.unit
    def test_to_engine_recipes(self, make_recipe_record):
        service = RecommendationService(AsyncMock(), AsyncMock(), rng=random.Random(1))
        recipes = service.to_engine_recipes(
            [make_recipe_record("1", "Soup", ["water"], meal_type="dinner")], "dinner"
        )
        assert recipes[0].id == "1"
        assert recipes[0].meal_type == "dinner"
        assert recipes[0].score is not None

    @pytest.mark.unit
    def test_to_engine_recipes_keeps_first_of_duplicate_ids(self, make_recipe_record):
        service = RecommendationService(AsyncMock(), AsyncMock(), rng=random.Random(1))
        recipes = service.to_engine_recipes(
            [
                make_recipe_record("1", "Soup", ["water"]),
                make_recipe_record("2", "Stew", ["beef"]),
                make_recipe_record("1", "Other Soup", ["stock"]),
            ],
            "any",
        )
        assert [(r.id, r.title) for r in recipes] == [("1", "Soup"), ("2", "Stew")]


class TestRecommend:
    """Tests for the full request pipeline with fake sources."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_inventory(self, make_recipe_record, test_user_id):
        recipe_source = AsyncMock(return_value=[make_recipe_record("1", "Soup", ["water"])])
        service = RecommendationService(AsyncMock(return_value=[]), recipe_source)

        assert await service.recommend(test_user_id) == []
        recipe_source.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_eligible_recipes(self, make_record, make_recipe_record, sources, test_user_id):
        inventory, recipes = sources(
            [make_record("1", "Spinach", days=2)],
            [make_recipe_record("1", "Spinach Soup", ["spinach"], instructions=[])],
        )
        service = RecommendationService(inventory, recipes)

        assert await service.recommend(test_user_id) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_passes_meal_type_and_limit(self, make_record, test_user_id):
        recipe_source = AsyncMock(return_value=[])
        service = RecommendationService(
            AsyncMock(return_value=[make_record("1", "Spinach", days=2)]),
            recipe_source,
            candidate_limit=250,
        )

        await service.recommend(test_user_id, RecommendationOptions(meal_type="dinner"))

        recipe_source.assert_awaited_once_with("dinner", 250)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_expiring_recipe_ranks_first(
        self, make_record, make_recipe_record, sources, today, test_user_id
    ):
        inventory, recipes = sources(
            [
                make_record("1", "Spinach", days=2),
                make_record("2", "Rice", days=30),
            ],
            [
                make_recipe_record("r-rice", "Rice Bowl", ["rice", "eggs"]),
                make_recipe_record("r-frittata", "Spinach Frittata", ["spinach", "eggs"]),
            ],
        )
        service = RecommendationService(inventory, recipes, rng=random.Random(3))

        results = await service.recommend(test_user_id, as_of=today)

        assert [r.id for r in results] == ["r-frittata", "r-rice"]
        top = results[0]
        assert top.used_ingredients == ["spinach"]
        assert top.missed_ingredients == ["eggs"]
        assert top.expiring_ingredients == 1
        assert top.match_count == 1
        assert top.total_ingredients == 2
        assert top.instructions == ["Cook it."]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_count_truncates(self, make_record, make_recipe_record, sources, today, test_user_id):
        inventory, recipes = sources(
            [make_record("1", "Milk", days=3)],
            [make_recipe_record(str(i), f"Milk Dish {i}", ["milk", "sugar"]) for i in range(8)],
        )
        service = RecommendationService(inventory, recipes, rng=random.Random(5))

        results = await service.recommend(test_user_id, count=3, as_of=today)

        assert len(results) == 3
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_matches_reported_once(
        self, make_record, make_recipe_record, sources, today, test_user_id
    ):
        inventory, recipes = sources(
            [
                make_record("1", "Whole Milk", days=30),
                make_record("2", "Milk", days=30),
            ],
            [make_recipe_record("r-1", "Milk Bread", ["milk", "flour"])],
        )
        service = RecommendationService(inventory, recipes, rng=random.Random(9))

        results = await service.recommend(test_user_id, as_of=today)

        assert results[0].used_ingredients == ["milk"]
        assert results[0].match_count == 1
        assert results[0].missed_ingredients == ["flour"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_source_errors_propagate(self, test_user_id):
        service = RecommendationService(
            AsyncMock(side_effect=RuntimeError("db down")), AsyncMock()
        )
        with pytest.raises(RuntimeError):
            await service.recommend(test_user_id)


class TestRankFallbacks:
    """Tests for degraded ranking paths."""

    @pytest.mark.unit
    def test_random_fallback_when_nothing_matches(self):
        service = RecommendationService(AsyncMock(), AsyncMock(), rng=random.Random(11))
        ingredients = [WeightedIngredient(id="1", name="Salmon", weight=12.0, days_until_expiry=1)]
        recipes = [
            Recipe(id=str(i), title=f"Cake {i}", ingredients=["flour", "sugar", "butter"],
                   instructions=["Bake."])
            for i in range(6)
        ]

        results = service.rank(ingredients, recipes, "any", count=4)

        assert len(results) == 4
        for r in results:
            assert 0 <= r.score <= 100
            assert r.used_ingredients == []
            assert r.missed_ingredients == ["flour", "sugar", "butter"]
            assert r.expiring_ingredients == 0

    @pytest.mark.unit
    @pytest.mark.parametrize("count", [0, -1, -5])
    def test_non_positive_count_returns_nothing(self, sample_ingredients, sample_recipes, count):
        service = RecommendationService(AsyncMock(), AsyncMock(), rng=random.Random(2))
        assert service.rank(sample_ingredients, sample_recipes, "any", count=count) == []

    @pytest.mark.unit
    def test_non_positive_count_in_fallback(self, monkeypatch, sample_recipes):
        def broken(*args, **kwargs):
            raise ValueError("bad network")

        monkeypatch.setattr(recommendations, "build_flow_network", broken)
        service = RecommendationService(AsyncMock(), AsyncMock())
        assert service.rank([], sample_recipes, "any", count=-1) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_recipe_ids_reported_once(
        self, make_record, make_recipe_record, sources, today, test_user_id
    ):
        inventory, recipes = sources(
            [make_record("1", "Spinach", days=2)],
            [
                make_recipe_record("r-1", "Spinach Soup", ["spinach", "stock"]),
                make_recipe_record("r-1", "Spinach Pie", ["spinach", "pastry"]),
            ],
        )
        service = RecommendationService(inventory, recipes, rng=random.Random(4))

        results = await service.recommend(test_user_id, as_of=today)

        assert [(r.id, r.title) for r in results] == [("r-1", "Spinach Soup")]
        assert results[0].missed_ingredients == ["stock"]

    @pytest.mark.unit
    def test_error_fallback(self, monkeypatch):
        def broken(*args, **kwargs):
            raise ValueError("bad network")

        monkeypatch.setattr(recommendations, "build_flow_network", broken)
        service = RecommendationService(AsyncMock(), AsyncMock())
        recipes = [
            Recipe(id="a", title="Stew", ingredients=["beef"], instructions=["Simmer."],
                   meal_type="dinner", score=5.0),
            Recipe(id="b", title="Toast", ingredients=["bread"], instructions=["Toast."],
                   meal_type="breakfast", score=6.0),
            Recipe(id="c", title="Salad", ingredients=["kale"], instructions=["Toss."],
                   meal_type="any"),
        ]

        results = service.rank([], recipes, "dinner", count=5)

        assert [(r.id, r.score) for r in results] == [("a", 75), ("c", 25)]
        assert all(r.used_ingredients == [] for r in results)


class TestSingleton:
    """Tests for the service singleton."""

    @pytest.mark.unit
    def test_singleton(self, monkeypatch):
        monkeypatch.setattr(recommendations, "_recommendation_service", None)
        first = get_recommendation_service()
        assert get_recommendation_service() is first
        assert first.candidate_limit == 1000
        assert first.max_paths == 100
