"""
Budget Customization

A generated budget is a starting point. Users adjust category amounts to
match how they actually live, and the adjusted budget replaces the
generated one.

IMPORTANT: Customized amounts are taken exactly as given.
They are NOT renormalized, so a customized budget can add up to more
(or less) than the income. That is surfaced through
BudgetAllocation.is_overallocated rather than silently corrected.
"""

import math
from datetime import datetime

from src.budget.engine import BudgetEngineError
from src.budget.tables import SAVINGS_CATEGORY
from src.models.budget import (
    MAX_RUPEE_AMOUNT,
    BudgetAllocation,
    CategoryAllocation,
    round_rupees,
)


class BudgetCustomizationError(BudgetEngineError):
    """User-supplied category amounts are not usable."""
    pass


def apply_customization(
    allocation: BudgetAllocation,
    overrides: dict[str, float],
) -> BudgetAllocation:
    """
    Replace category amounts with user-chosen values.
    
    Categories not mentioned keep their amounts. New categories are added.
    Percentages are recomputed against the unchanged total budget.
    
    Args:
        allocation: The allocation being customized
        overrides: Category -> new monthly amount in rupees
    
    Returns:
        A new BudgetAllocation (the input is not modified)
    
    Raises:
        BudgetCustomizationError: If overrides are empty or invalid
    """
    if not overrides:
        raise BudgetCustomizationError("No category amounts were provided")
    
    amounts = {
        category: item.amount for category, item in allocation.categories.items()
    }
    
    seen = set()
    for category, amount in overrides.items():
        category = category.strip()
        if not category:
            raise BudgetCustomizationError("Category names cannot be empty")
        if category in seen:
            raise BudgetCustomizationError(
                f"Category '{category}' was given more than once"
            )
        seen.add(category)
        if amount is None or not math.isfinite(amount) or amount < 0:
            raise BudgetCustomizationError(
                f"Amount for '{category}' must be a finite number, zero or more"
            )
        if amount > MAX_RUPEE_AMOUNT:
            raise BudgetCustomizationError(
                f"Amount for '{category}' is larger than any real budget"
            )
        amounts[category] = round_rupees(amount)
    
    total_budget = allocation.total_budget
    categories = {
        category: CategoryAllocation(
            category=category,
            amount=amount,
            percentage=amount / total_budget,
        )
        for category, amount in amounts.items()
    }
    
    savings = categories.get(SAVINGS_CATEGORY)
    
    return allocation.model_copy(
        update={
            "categories": categories,
            "total_allocated": sum(amounts.values()),
            "savings_amount": savings.amount if savings else 0,
            "savings_percentage": savings.percentage if savings else 0.0,
            "is_customized": True,
            "customized_at": datetime.utcnow(),
        }
    )
