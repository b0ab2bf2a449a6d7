"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all tests.
"""

import os
import random
import sys
from datetime import date, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add backend to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment (settings require Supabase credentials)
os.environ["TESTING"] = "true"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app():
    """FastAPI test application."""
    from pantry_rescue.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Sync test client for API tests."""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock = MagicMock()
    mock.table.return_value.select.return_value.execute.return_value.data = []
    return mock


@pytest.fixture
def test_user_id():
    """Test user ID for recommendation requests."""
    return "test-user-00000000-0000-0000-0000-000000000000"


# =============================================================================
# Engine Fixtures
# =============================================================================


class FixedRandom(random.Random):
    """Random source whose random() is pinned, so score jitter is zero."""

    def __init__(self, value: float = 0.5):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def fixed_rng():
    """Random source with zero jitter."""
    return FixedRandom()


@pytest.fixture
def today():
    """Fixed reference date for expiry calculations."""
    return date(2026, 10, 18)


@pytest.fixture
def make_record(today):
    """Factory for inventory records expiring N days from `today`."""
    from pantry_rescue.models.inventory import InventoryRecord

    def _make(record_id, name, days=None, quantity=1, unit="unit", about_to_expire=False):
        return InventoryRecord(
            id=record_id,
            name=name,
            category="other",
            quantity=quantity,
            unit=unit,
            expiry_date=today + timedelta(days=days) if days is not None else None,
            about_to_expire=about_to_expire,
        )
    return _make


@pytest.fixture
def make_recipe_record():
    """Factory for stored recipes."""
    from pantry_rescue.models.recipes import RecipeRecord

    def _make(recipe_id, title, ingredients, meal_type="any", instructions=None):
        return RecipeRecord(
            id=recipe_id,
            title=title,
            ingredients=ingredients,
            instructions=instructions if instructions is not None else ["Cook it."],
            meal_type=meal_type,
        )
    return _make


@pytest.fixture
def sources():
    """Build async inventory/recipe sources returning fixed data."""
    def _build(inventory, recipes):
        async def inventory_source(user_id):
            return list(inventory)

        async def recipe_source(meal_type, limit):
            return list(recipes)

        return inventory_source, recipe_source
    return _build


@pytest.fixture
def sample_ingredients():
    """Weighted ingredients: urgent spinach, fresh milk, urgent chicken."""
    from pantry_rescue.services.flow_network import WeightedIngredient
    return [
        WeightedIngredient(id="ing-spinach", name="Spinach", weight=12.0,
                           days_until_expiry=2, quantity=200, unit="g"),
        WeightedIngredient(id="ing-milk", name="Milk", weight=1.0,
                           days_until_expiry=10, quantity=1, unit="l"),
        WeightedIngredient(id="ing-chicken", name="Chicken Breast", weight=12.0,
                           days_until_expiry=1, quantity=0.5, unit="kg"),
    ]


@pytest.fixture
def sample_recipes():
    """Engine recipes across meal types."""
    from pantry_rescue.services.flow_network import Recipe
    return [
        Recipe(id="r-omelette", title="Spinach Omelette", meal_type="breakfast",
               ingredients=["fresh spinach", "2 eggs", "milk"],
               instructions=["Whisk.", "Cook."]),
        Recipe(id="r-salad", title="Chicken Salad", meal_type="lunch",
               ingredients=["chicken breast", "lettuce", "tomato"],
               instructions=["Grill.", "Toss."]),
        Recipe(id="r-pancakes", title="Pancakes", meal_type="any",
               ingredients=["flour", "milk", "eggs"],
               instructions=["Mix.", "Fry."]),
    ]
