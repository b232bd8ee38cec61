"""
Budget Allocation Engine

DESIGN DECISION: The allocation is a pure function over static tables.
No I/O, no hidden state, no randomness: the same inputs always produce
the same allocation. Persistence, auditing and input validation belong
to the caller.

For each category:
    
    effective_weight = base_percentage
                       x city_factor
                       x family_size_factor
                       x income_factor
                       x age_factor

The effective weights are then normalized so the final percentages sum
to exactly 1.0, and every percentage is turned into whole rupees.

The only failure is a weight sum that cannot be normalized (all zero,
negative or non-finite). That is a configuration problem, never a
runtime condition worth retrying, so it raises InvalidWeightsError.
"""

import math
from typing import Optional

from src.budget.tables import (
    CITY_ADJUSTMENTS,
    SAVINGS_CATEGORY,
    age_bracket,
    default_base_percentages,
    family_size_factors,
    income_bracket,
    resolve_city,
)
from src.models.budget import (
    BudgetAllocation,
    BudgetProfile,
    CategoryAllocation,
    round_rupees,
)


class BudgetEngineError(Exception):
    """Base exception for budget engine errors."""
    pass


class InvalidWeightsError(BudgetEngineError):
    """Base percentages cannot be normalized (configuration error)."""
    pass


def _check_base_percentages(base_percentages: dict[str, float]) -> None:
    """Reject weights that can never produce a valid allocation."""
    for category, weight in base_percentages.items():
        if not category:
            raise InvalidWeightsError("Category IDs cannot be empty")
        if not math.isfinite(weight):
            raise InvalidWeightsError(
                f"Base percentage for '{category}' is not a finite number"
            )
        if weight < 0:
            raise InvalidWeightsError(
                f"Base percentage for '{category}' cannot be negative ({weight})"
            )


def compose_weights(
    monthly_income: float,
    city: str,
    family_size: int,
    age: int,
    base_percentages: dict[str, float],
) -> tuple[dict[str, float], dict[str, object]]:
    """
    Apply all four adjustment factors to the base percentages.
    
    Returns:
        (effective_weights, metadata) where metadata records which city
        table and brackets were used.
    """
    city_key = resolve_city(city)
    city_factors = CITY_ADJUSTMENTS[city_key]
    family_factors = family_size_factors(family_size)
    income_name, income_factors = income_bracket(monthly_income)
    age_name, age_factors = age_bracket(age)
    
    weights = {}
    for category, base in base_percentages.items():
        weights[category] = (
            base
            * city_factors.get(category, 1.0)
            * family_factors.get(category, 1.0)
            * income_factors.get(category, 1.0)
            * age_factors.get(category, 1.0)
        )
    
    metadata = {
        "city_table": city_key,
        "family_size": family_size,
        "income_bracket": income_name,
        "age_bracket": age_name,
    }
    return weights, metadata


def normalize_weights(weights: dict[str, float]) -> dict[str, float]:
    """
    Scale weights so they sum to 1.0.
    
    Raises:
        InvalidWeightsError: If the weights sum to zero (or worse).
    """
    total = sum(weights.values())
    if not math.isfinite(total) or total <= 0:
        raise InvalidWeightsError(
            f"Effective weights sum to {total}; cannot normalize. "
            "Check the configured base percentages."
        )
    return {category: weight / total for category, weight in weights.items()}


def allocate_budget(
    monthly_income: float,
    city: str,
    family_size: int,
    age: int,
    base_percentages: Optional[dict[str, float]] = None,
) -> BudgetAllocation:
    """
    Compute a per-category allocation of a monthly income.
    
    Args:
        monthly_income: Income to allocate (must be > 0)
        city: City of residence; unrecognized cities use 'default' factors
        family_size: People supported by the income (must be >= 1)
        age: Age of the earner (>= 18)
        base_percentages: Category -> base share. Defaults to the
                          standard seven categories.
    
    Returns:
        BudgetAllocation whose percentages sum to 1.0
    
    Raises:
        ValueError: If the income is not a positive finite number
        InvalidWeightsError: If the base percentages cannot be normalized
    """
    if not math.isfinite(monthly_income) or monthly_income <= 0:
        raise ValueError(
            f"Monthly income must be a positive finite number, got {monthly_income}"
        )
    
    if base_percentages is None:
        base_percentages = default_base_percentages()
    
    _check_base_percentages(base_percentages)
    
    weights, metadata = compose_weights(
        monthly_income=monthly_income,
        city=city,
        family_size=family_size,
        age=age,
        base_percentages=base_percentages,
    )
    percentages = normalize_weights(weights)
    
    categories = {
        category: CategoryAllocation(
            category=category,
            amount=round_rupees(percentage * monthly_income),
            percentage=percentage,
        )
        for category, percentage in percentages.items()
    }
    
    savings = categories.get(SAVINGS_CATEGORY)
    
    return BudgetAllocation(
        categories=categories,
        total_budget=monthly_income,
        total_allocated=sum(c.amount for c in categories.values()),
        savings_amount=savings.amount if savings else 0,
        savings_percentage=savings.percentage if savings else 0.0,
        metadata=metadata,
    )


def allocate_profile(
    profile: BudgetProfile,
    base_percentages: Optional[dict[str, float]] = None,
) -> BudgetAllocation:
    """Allocate the budget income of a validated profile."""
    return allocate_budget(
        monthly_income=profile.budget_income,
        city=profile.city,
        family_size=profile.family_size,
        age=profile.age,
        base_percentages=base_percentages,
    )
