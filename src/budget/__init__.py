"""Budget engine package."""

from src.budget.customization import BudgetCustomizationError, apply_customization
from src.budget.engine import (
    BudgetEngineError,
    InvalidWeightsError,
    allocate_budget,
    allocate_profile,
    compose_weights,
    normalize_weights,
)
from src.budget.health import (
    analyze_housing,
    analyze_savings,
    assess_budget_health,
    assess_lifestyle_balance,
    savings_target,
)

__all__ = [
    "BudgetCustomizationError",
    "BudgetEngineError",
    "InvalidWeightsError",
    "allocate_budget",
    "allocate_profile",
    "analyze_housing",
    "analyze_savings",
    "apply_customization",
    "assess_budget_health",
    "assess_lifestyle_balance",
    "compose_weights",
    "normalize_weights",
    "savings_target",
]
