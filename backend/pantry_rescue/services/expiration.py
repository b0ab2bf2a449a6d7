"""
Expiry urgency and ingredient weighting.

Turns inventory rows into weighted ingredients for one recommendation
pass. Weights follow coarse urgency tiers (expired, urgent, soon) scaled
by how strongly the caller wants to prioritize expiring food.
"""

import logging
from datetime import date
from typing import Literal, Optional, Sequence

from pantry_rescue.models.inventory import InventoryRecord
from pantry_rescue.models.recipes import RecommendationOptions
from pantry_rescue.services.flow_network import NO_EXPIRY_DAYS, WeightedIngredient

logger = logging.getLogger(__name__)

EXPIRED_WEIGHT = 5.0
URGENT_WEIGHT = 4.0  # <= 3 days
SOON_WEIGHT = 2.0  # <= 7 days
NORMAL_WEIGHT = 1.0

PRIORITIZED_MULTIPLIER = 3.0
DEFAULT_MULTIPLIER = 1.5
SELECTED_BOOST = 2.0


def days_until_expiry(expiry_date: Optional[date], as_of: Optional[date] = None) -> int:
    """Whole days left before expiry, floored at -1 (999 when there is no date)."""
    if expiry_date is None:
        return NO_EXPIRY_DAYS
    today = as_of or date.today()
    return max(-1, (expiry_date - today).days)


def expiry_status(days: int) -> Literal["fresh", "use_soon", "expiring", "expired"]:
    """Get expiration status from days until expiry."""
    if days < 0:
        return "expired"
    if days <= 3:
        return "expiring"
    if days <= 7:
        return "use_soon"
    return "fresh"


def matches_selection(name: str, selected: Optional[Sequence[str]]) -> bool:
    """Case-insensitive substring match in either direction."""
    if not selected:
        return False
    lowered = name.lower()
    return any(s.lower() in lowered or lowered in s.lower() for s in selected)


def ingredient_weight(
    days: int,
    about_to_expire: bool = False,
    prioritize_expiring: bool = True,
    selected: bool = False,
) -> float:
    """Urgency weight for a single inventory item."""
    multiplier = PRIORITIZED_MULTIPLIER if prioritize_expiring else DEFAULT_MULTIPLIER

    # about_to_expire is a manual flag and overrides the computed tier
    if about_to_expire or days <= 0:
        weight = EXPIRED_WEIGHT * multiplier
    elif days <= 3:
        weight = URGENT_WEIGHT * multiplier
    elif days <= 7:
        weight = SOON_WEIGHT * multiplier
    else:
        weight = NORMAL_WEIGHT

    if selected:
        weight *= SELECTED_BOOST
    return weight


def to_weighted_ingredients(
    records: Sequence[InventoryRecord],
    options: RecommendationOptions,
    as_of: Optional[date] = None,
    log: Optional[logging.Logger] = None,
) -> list[WeightedIngredient]:
    """Filter inventory by the optional selection and weight each item."""
    log = log or logger
    selected = options.selected_ingredients or None

    if selected:
        records = [r for r in records if matches_selection(r.name, selected)]
        log.debug(f"Selection {selected} kept {len(records)} ingredients")

    weighted: list[WeightedIngredient] = []
    for record in records:
        days = days_until_expiry(record.expiry_date, as_of)
        weight = ingredient_weight(
            days,
            about_to_expire=record.about_to_expire,
            prioritize_expiring=options.prioritize_expiring,
            selected=matches_selection(record.name, selected),
        )
        if weight > NORMAL_WEIGHT:
            log.debug(f"Weighted ingredient {record.name}: weight={weight}, days={days} ({expiry_status(days)})")

        weighted.append(WeightedIngredient(
            id=record.id,
            name=record.name,
            weight=weight,
            days_until_expiry=days,
            quantity=record.quantity,
            unit=record.unit,
        ))

    return weighted
