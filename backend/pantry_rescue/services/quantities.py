"""
Quantity normalization.

Converts inventory quantities into a common base unit so that flow
capacities are comparable: grams for mass, milliliters for volume,
unchanged for count-like units ("unit", "piece", ...).
"""

import math
from typing import Optional, Union

# Multipliers into the base unit, keyed by lowercase unit alias
UNIT_MULTIPLIERS: dict[str, float] = {
    # Mass -> grams
    "kilo": 1000,
    "kilos": 1000,
    "kilogram": 1000,
    "kilograms": 1000,
    "kg": 1000,
    # Volume -> milliliters
    "liter": 1000,
    "liters": 1000,
    "litre": 1000,
    "litres": 1000,
    "l": 1000,
    "tbsp": 15,
    "tablespoon": 15,
    "tablespoons": 15,
    "tsp": 5,
    "teaspoon": 5,
    "teaspoons": 5,
    "cup": 240,
    "cups": 240,
}

DEFAULT_QUANTITY = 1.0
DEFAULT_UNIT = "unit"


def normalize_quantity(quantity: float, unit: Optional[str]) -> float:
    """Convert a quantity to its base unit. Unknown units pass through."""
    multiplier = UNIT_MULTIPLIERS.get((unit or "").strip().lower())
    if multiplier is None:
        return quantity
    return quantity * multiplier


def parse_quantity(value: Union[float, int, str, None]) -> float:
    """Read a raw inventory quantity, falling back to 1 when missing or garbled."""
    if value is None or value == "":
        return DEFAULT_QUANTITY
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        return DEFAULT_QUANTITY
    if math.isnan(quantity) or math.isinf(quantity):
        return DEFAULT_QUANTITY
    return quantity


def quantity_factor(normalized_quantity: float) -> float:
    """Saturating log scale so large quantities do not dominate (1.0 to 3.0)."""
    return min(3.0, math.log10(max(normalized_quantity, 0) + 1) + 1)
