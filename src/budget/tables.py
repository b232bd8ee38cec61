"""
Static Lookup Tables for the Allocation Engine

Every number the engine uses lives here. The tables are plain dicts keyed
by category ID; a category missing from a table is left unadjusted (1.0).

Four adjustment dimensions are applied on top of the base percentages:
1. City cost of living
2. Family size
3. Income bracket
4. Age bracket
"""

from src.models.budget import CategoryWeight


# =============================================================================
# BASE PERCENTAGES
# =============================================================================

DEFAULT_CATEGORY_WEIGHTS: dict[str, CategoryWeight] = {
    "food_dining": CategoryWeight(
        category_id="food_dining",
        base_percentage=0.25,
        display_name="Food & Dining",
        description="Food, dining out, and beverages",
    ),
    "home_utilities": CategoryWeight(
        category_id="home_utilities",
        base_percentage=0.30,
        display_name="Home & Utilities",
        description="Rent, electricity, water, and household items",
    ),
    "transportation": CategoryWeight(
        category_id="transportation",
        base_percentage=0.10,
        display_name="Transportation",
        description="Petrol, metro, bus, and auto rickshaw",
    ),
    "entertainment": CategoryWeight(
        category_id="entertainment",
        base_percentage=0.08,
        display_name="Entertainment",
        description="Movies, games, and entertainment",
    ),
    "shopping": CategoryWeight(
        category_id="shopping",
        base_percentage=0.05,
        display_name="Shopping",
        description="Clothes, shoes, and personal items",
    ),
    "healthcare": CategoryWeight(
        category_id="healthcare",
        base_percentage=0.07,
        display_name="Healthcare",
        description="Medicine, doctor visits, and health insurance",
    ),
    "savings": CategoryWeight(
        category_id="savings",
        base_percentage=0.15,
        display_name="Savings",
        description="Savings, investments, and emergency fund",
    ),
}

SAVINGS_CATEGORY = "savings"


def default_base_percentages() -> dict[str, float]:
    """Base percentages of the default categories, as a fresh dict."""
    return {
        category_id: weight.base_percentage
        for category_id, weight in DEFAULT_CATEGORY_WEIGHTS.items()
    }


# =============================================================================
# CITY ADJUSTMENTS
# =============================================================================

DEFAULT_CITY = "default"

CITY_ADJUSTMENTS: dict[str, dict[str, float]] = {
    "Mumbai": {
        "home_utilities": 1.4,
        "transportation": 1.2,
        "food_dining": 1.3,
        "entertainment": 1.2,
        "shopping": 1.1,
        "healthcare": 1.2,
        "savings": 0.85,
    },
    "Delhi": {
        "home_utilities": 1.3,
        "transportation": 1.1,
        "food_dining": 1.2,
        "entertainment": 1.1,
        "shopping": 1.0,
        "healthcare": 1.1,
        "savings": 0.9,
    },
    "Bangalore": {
        "home_utilities": 1.2,
        "transportation": 1.0,
        "food_dining": 1.1,
        "entertainment": 1.0,
        "shopping": 1.0,
        "healthcare": 1.0,
        "savings": 0.95,
    },
    "Hyderabad": {
        "home_utilities": 1.1,
        "transportation": 0.9,
        "food_dining": 1.0,
        "entertainment": 0.9,
        "shopping": 0.9,
        "healthcare": 0.9,
        "savings": 1.0,
    },
    "Chennai": {
        "home_utilities": 1.2,
        "transportation": 0.9,
        "food_dining": 1.0,
        "entertainment": 0.9,
        "shopping": 0.9,
        "healthcare": 0.9,
        "savings": 0.95,
    },
    "Pune": {
        "home_utilities": 1.1,
        "transportation": 0.9,
        "food_dining": 1.0,
        "entertainment": 0.9,
        "shopping": 0.9,
        "healthcare": 0.9,
        "savings": 1.0,
    },
    "Kolkata": {
        "home_utilities": 1.0,
        "transportation": 0.8,
        "food_dining": 0.9,
        "entertainment": 0.8,
        "shopping": 0.8,
        "healthcare": 0.8,
        "savings": 1.1,
    },
    DEFAULT_CITY: {
        "home_utilities": 1.0,
        "transportation": 1.0,
        "food_dining": 1.0,
        "entertainment": 1.0,
        "shopping": 1.0,
        "healthcare": 1.0,
        "savings": 1.0,
    },
}

# Lower-cased city name -> table key
_CITY_KEYS = {name.lower(): name for name in CITY_ADJUSTMENTS if name != DEFAULT_CITY}


def resolve_city(city: str) -> str:
    """
    Map a free-text city to its table key.
    
    Matching ignores case and surrounding whitespace.
    Anything unrecognized resolves to the 'default' table.
    """
    return _CITY_KEYS.get((city or "").strip().lower(), DEFAULT_CITY)


# =============================================================================
# FAMILY SIZE ADJUSTMENTS
# =============================================================================

FAMILY_SIZE_ADJUSTMENTS: dict[int, dict[str, float]] = {
    1: {
        "food_dining": 0.6,
        "home_utilities": 0.7,
        "transportation": 0.8,
        "entertainment": 0.8,
        "shopping": 0.7,
        "healthcare": 0.8,
        "savings": 1.3,
    },
    2: {
        "food_dining": 0.8,
        "home_utilities": 0.9,
        "transportation": 0.9,
        "entertainment": 0.9,
        "shopping": 0.9,
        "healthcare": 0.9,
        "savings": 1.2,
    },
    3: {
        "food_dining": 1.2,
        "home_utilities": 1.1,
        "transportation": 1.0,
        "entertainment": 1.0,
        "shopping": 1.1,
        "healthcare": 1.2,
        "savings": 0.9,
    },
    4: {
        "food_dining": 1.6,
        "home_utilities": 1.4,
        "transportation": 1.2,
        "entertainment": 1.2,
        "shopping": 1.4,
        "healthcare": 1.5,
        "savings": 0.7,
    },
}

# Largest family with its own row; bigger families scale off this one
FAMILY_BASELINE_SIZE = 4

# Upper bounds for spending categories once a family outgrows the table
FAMILY_SCALE_CAPS: dict[str, float] = {
    "food_dining": 2.5,
    "home_utilities": 2.0,
    "transportation": 1.8,
    "entertainment": 1.5,
    "shopping": 2.0,
    "healthcare": 2.2,
}

# Savings shrinks as the family grows, but never below this
SAVINGS_FAMILY_FLOOR = 0.3


def family_size_factors(family_size: int) -> dict[str, float]:
    """
    Family size multipliers.
    
    Sizes 1-4 come straight from the table. Larger families scale the
    4-person row linearly by family_size / 4: spending categories grow up
    to their cap, savings shrinks down to its floor.
    """
    if family_size < 1:
        raise ValueError(f"Family size must be at least 1, got {family_size}")
    
    if family_size <= FAMILY_BASELINE_SIZE:
        return dict(FAMILY_SIZE_ADJUSTMENTS[family_size])
    
    scale = family_size / FAMILY_BASELINE_SIZE
    baseline = FAMILY_SIZE_ADJUSTMENTS[FAMILY_BASELINE_SIZE]
    
    factors = {}
    for category, multiplier in baseline.items():
        if category == SAVINGS_CATEGORY:
            factors[category] = max(multiplier / scale, SAVINGS_FAMILY_FLOOR)
        else:
            factors[category] = min(multiplier * scale, FAMILY_SCALE_CAPS[category])
    return factors


# =============================================================================
# INCOME ADJUSTMENTS
# =============================================================================

# (exclusive upper bound, bracket name, multipliers); last bound is open
INCOME_BRACKETS: list[tuple[float, str, dict[str, float]]] = [
    (25000, "below_25k", {
        "food_dining": 1.2,
        "home_utilities": 1.1,
        "transportation": 0.9,
        "entertainment": 0.7,
        "shopping": 0.8,
        "healthcare": 0.9,
        "savings": 0.8,
    }),
    (50000, "25k_to_50k", {
        "food_dining": 1.0,
        "home_utilities": 1.0,
        "transportation": 1.0,
        "entertainment": 1.0,
        "shopping": 1.0,
        "healthcare": 1.0,
        "savings": 1.0,
    }),
    (100000, "50k_to_100k", {
        "food_dining": 0.9,
        "home_utilities": 0.95,
        "transportation": 1.1,
        "entertainment": 1.2,
        "shopping": 1.2,
        "healthcare": 1.1,
        "savings": 1.2,
    }),
    (float("inf"), "above_100k", {
        "food_dining": 0.8,
        "home_utilities": 0.9,
        "transportation": 1.2,
        "entertainment": 1.4,
        "shopping": 1.4,
        "healthcare": 1.2,
        "savings": 1.4,
    }),
]


def income_bracket(monthly_income: float) -> tuple[str, dict[str, float]]:
    """Bracket name and multipliers for a monthly income."""
    for upper_bound, name, factors in INCOME_BRACKETS:
        if monthly_income < upper_bound:
            return name, dict(factors)
    # Unreachable for finite incomes
    _, name, factors = INCOME_BRACKETS[-1]
    return name, dict(factors)


# =============================================================================
# AGE ADJUSTMENTS
# =============================================================================

AGE_BRACKETS: list[tuple[float, str, dict[str, float]]] = [
    (25, "under_25", {
        "food_dining": 0.9,
        "home_utilities": 0.9,
        "transportation": 1.1,
        "entertainment": 1.3,
        "shopping": 1.2,
        "healthcare": 0.8,
        "savings": 1.1,
    }),
    (35, "25_to_34", {
        "food_dining": 1.0,
        "home_utilities": 1.0,
        "transportation": 1.0,
        "entertainment": 1.0,
        "shopping": 1.0,
        "healthcare": 1.0,
        "savings": 1.0,
    }),
    (50, "35_to_49", {
        "food_dining": 1.0,
        "home_utilities": 1.0,
        "transportation": 0.9,
        "entertainment": 0.9,
        "shopping": 0.9,
        "healthcare": 1.2,
        "savings": 1.1,
    }),
    (float("inf"), "50_plus", {
        "food_dining": 0.9,
        "home_utilities": 1.0,
        "transportation": 0.8,
        "entertainment": 0.8,
        "shopping": 0.8,
        "healthcare": 1.4,
        "savings": 1.2,
    }),
]


def age_bracket(age: int) -> tuple[str, dict[str, float]]:
    """Bracket name and multipliers for an age."""
    for upper_bound, name, factors in AGE_BRACKETS:
        if age < upper_bound:
            return name, dict(factors)
    _, name, factors = AGE_BRACKETS[-1]
    return name, dict(factors)
