"""
Budget Health Assessment

Scores an allocation against savings targets for the household's income
bracket and a couple of spending ceilings. The result is advice for the
user, it never changes the allocation.

Alongside the score: a savings analysis, a housing cost rating and a
lifestyle balance (discretionary against essential spending).
"""

from src.budget.tables import SAVINGS_CATEGORY
from src.models.budget import (
    BudgetAllocation,
    BudgetHealth,
    HousingAnalysis,
    LifestyleBalance,
    SavingsAnalysis,
    round_rupees,
)


# (exclusive upper bound, bracket name, minimum savings %, ideal savings %)
SAVINGS_TARGETS: list[tuple[float, str, float, float]] = [
    (40000, "lower_middle", 10, 15),
    (75000, "middle", 15, 20),
    (150000, "upper_middle", 20, 25),
    (float("inf"), "affluent", 25, 30),
]

HOUSING_CATEGORY = "home_utilities"
FOOD_CATEGORY = "food_dining"

HOUSING_HIGH_PERCENT = 40
HOUSING_EFFICIENT_PERCENT = 30
HOUSING_GOOD_PERCENT = 35
FOOD_HIGH_PERCENT = 35

DISCRETIONARY_CATEGORIES = ("entertainment", "shopping")
CONSERVATIVE_DISCRETIONARY_PERCENT = 15
LIBERAL_DISCRETIONARY_PERCENT = 25

# Growth multiple applied to ten years of savings (roughly 12% CAGR)
TEN_YEAR_GROWTH_MULTIPLE = 1.8


def savings_target(monthly_income: float) -> tuple[str, float, float]:
    """
    Savings target for an income.
    
    Returns:
        (bracket_name, minimum_percent, ideal_percent)
    """
    for upper_bound, name, minimum, ideal in SAVINGS_TARGETS:
        if monthly_income < upper_bound:
            return name, minimum, ideal
    _, name, minimum, ideal = SAVINGS_TARGETS[-1]
    return name, minimum, ideal


def _grade(score: int) -> str:
    if score >= 90:
        return "A+"
    if score >= 80:
        return "A"
    if score >= 70:
        return "B+"
    if score >= 60:
        return "B"
    return "C"


def _status(score: int) -> str:
    if score >= 70:
        return "Healthy"
    if score >= 50:
        return "Needs Improvement"
    return "Concerning"


def assess_budget_health(allocation: BudgetAllocation) -> BudgetHealth:
    """
    Score an allocation out of 100.
    
    Deductions:
    - Savings below the bracket minimum: -20
    - Housing above 40% of income: -15
    - Food above 35% of income: -10
    """
    _, min_savings, ideal_savings = savings_target(allocation.total_budget)
    
    savings_rate = allocation.percentage_of(SAVINGS_CATEGORY)
    housing_rate = allocation.percentage_of(HOUSING_CATEGORY)
    food_rate = allocation.percentage_of(FOOD_CATEGORY)
    
    score = 100
    issues = []
    strengths = []
    
    if savings_rate < min_savings:
        score -= 20
        issues.append(
            f"Savings at {savings_rate:.0f}% is below recommended {min_savings:.0f}%"
        )
    elif savings_rate >= ideal_savings:
        strengths.append(f"Excellent savings rate of {savings_rate:.0f}%")
    
    if housing_rate > HOUSING_HIGH_PERCENT:
        score -= 15
        issues.append(f"Housing cost at {housing_rate:.0f}% is quite high")
    elif HOUSING_CATEGORY in allocation.categories and housing_rate <= HOUSING_EFFICIENT_PERCENT:
        strengths.append(f"Efficient housing cost at {housing_rate:.0f}%")
    
    if food_rate > FOOD_HIGH_PERCENT:
        score -= 10
        issues.append(f"Food expenses at {food_rate:.0f}% seem high")
    
    return BudgetHealth(
        score=score,
        grade=_grade(score),
        status=_status(score),
        issues=issues,
        strengths=strengths,
    )


def analyze_savings(allocation: BudgetAllocation) -> SavingsAnalysis:
    """Compare the savings allocation with the bracket target."""
    income = allocation.total_budget
    _, min_savings, ideal_savings = savings_target(income)
    
    savings_rate = allocation.percentage_of(SAVINGS_CATEGORY)
    monthly = allocation.savings_amount
    yearly = monthly * 12
    
    if savings_rate >= ideal_savings:
        status = "Excellent"
    elif savings_rate >= min_savings:
        status = "Good"
    else:
        status = "Needs Improvement"
    
    if savings_rate < ideal_savings:
        shortfall = round_rupees(income * (ideal_savings - savings_rate) / 100)
        recommendation = (
            f"Increase savings by ₹{shortfall:,} to reach {ideal_savings:.0f}% target"
        )
    else:
        recommendation = (
            "Your savings rate is excellent! Focus on optimizing investment allocation"
        )
    
    return SavingsAnalysis(
        current_rate=savings_rate,
        target_rate=ideal_savings,
        minimum_rate=min_savings,
        monthly_amount=monthly,
        yearly_amount=yearly,
        ten_year_projection=round_rupees(yearly * 10 * TEN_YEAR_GROWTH_MULTIPLE),
        status=status,
        recommendation=recommendation,
    )


def analyze_housing(allocation: BudgetAllocation) -> HousingAnalysis:
    """Rate the housing share: Excellent up to 30%, Good to 35%, Acceptable to 40%."""
    housing = allocation.categories.get(HOUSING_CATEGORY)
    housing_rate = allocation.percentage_of(HOUSING_CATEGORY)
    
    if housing_rate <= HOUSING_EFFICIENT_PERCENT:
        status = "Excellent"
    elif housing_rate <= HOUSING_GOOD_PERCENT:
        status = "Good"
    elif housing_rate <= HOUSING_HIGH_PERCENT:
        status = "Acceptable"
    else:
        status = "High"
    
    if housing_rate > HOUSING_GOOD_PERCENT:
        recommendation = (
            f"Consider locations with lower rent to reduce housing cost "
            f"from {housing_rate:.0f}% to {HOUSING_EFFICIENT_PERCENT}%"
        )
    else:
        recommendation = "Your housing cost is well-managed"
    
    return HousingAnalysis(
        amount=housing.amount if housing else 0,
        percentage=housing_rate,
        status=status,
        recommendation=recommendation,
    )


def assess_lifestyle_balance(allocation: BudgetAllocation) -> LifestyleBalance:
    """
    Classify discretionary spending (entertainment and shopping).
    
    Below 15% of income is Conservative, below 25% Balanced, otherwise
    Liberal. Everything that is neither discretionary nor savings counts
    as essential.
    """
    discretionary = sum(
        allocation.percentage_of(category) for category in DISCRETIONARY_CATEGORIES
    )
    savings_rate = allocation.percentage_of(SAVINGS_CATEGORY)
    
    if discretionary < CONSERVATIVE_DISCRETIONARY_PERCENT:
        balance = "Conservative"
    elif discretionary < LIBERAL_DISCRETIONARY_PERCENT:
        balance = "Balanced"
    else:
        balance = "Liberal"
    
    if discretionary > LIBERAL_DISCRETIONARY_PERCENT:
        recommendation = "Consider reducing discretionary spending to boost savings"
    else:
        recommendation = "Your lifestyle spending is well-balanced"
    
    return LifestyleBalance(
        discretionary_percentage=discretionary,
        essential_percentage=100 - discretionary - savings_rate,
        savings_percentage=savings_rate,
        balance=balance,
        recommendation=recommendation,
    )
