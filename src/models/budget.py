"""
Core Budget Models for Budget Planner

These models define the schemas for everything flowing through the
budget generation pipeline:
1. The profile summary a budget is generated from
2. The per-category allocation produced by the engine
3. The health assessment attached to a stored budget
4. The stored budget document itself

DESIGN DECISION: Allocations are whole rupees.
Fractions of a rupee are meaningless for a monthly plan and only make
the numbers harder to read, so amounts are rounded half-up at the
point they are produced.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def round_rupees(value: float) -> int:
    """Round a rupee value half-up to a whole rupee."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BudgetCategory(str, Enum):
    """
    Default budget categories.
    
    Custom categories may still be allocated by passing explicit base
    percentages to the engine; these are the ones the tables know about.
    """
    FOOD_DINING = "food_dining"
    HOME_UTILITIES = "home_utilities"
    TRANSPORTATION = "transportation"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    HEALTHCARE = "healthcare"
    SAVINGS = "savings"


class IncomeFrequency(str, Enum):
    """How often an income source pays out."""
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    IRREGULAR = "irregular"


# Largest amount accepted anywhere a user types rupees
MAX_RUPEE_AMOUNT = 1_000_000_000_000

# Multipliers that convert one payout into a monthly amount
MONTHLY_MULTIPLIERS = {
    IncomeFrequency.WEEKLY: 4.33,
    IncomeFrequency.BI_WEEKLY: 2.17,
    IncomeFrequency.MONTHLY: 1.0,
    IncomeFrequency.QUARTERLY: 0.33,
    IncomeFrequency.ANNUALLY: 0.083,
    IncomeFrequency.IRREGULAR: 1.0,
}


# =============================================================================
# STATIC CONFIGURATION MODELS
# =============================================================================

class CategoryWeight(BaseModel):
    """
    Default share of income for one category, before any adjustment.
    
    Defined once in the tables module and never mutated.
    """
    model_config = ConfigDict(frozen=True)
    
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category identifier"
    )
    base_percentage: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Share of income before adjustment (0-1)"
    )
    description: str = Field(
        default="",
        description="What the category covers"
    )
    display_name: str = Field(
        default="",
        description="Name shown to users"
    )


# =============================================================================
# PROFILE MODELS
# =============================================================================

class IncomeSource(BaseModel):
    """A single source of household income."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Source name (e.g., 'Salary', 'Rental income')"
    )
    amount: float = Field(
        ...,
        ge=0,
        le=MAX_RUPEE_AMOUNT,
        allow_inf_nan=False,
        description="Amount received per payout, in INR"
    )
    frequency: IncomeFrequency = IncomeFrequency.MONTHLY
    is_stable: bool = Field(
        default=True,
        description="Whether the amount is predictable month to month"
    )
    include_in_budget: bool = Field(
        default=True,
        description="Whether this source counts towards the budget income"
    )
    
    @property
    def monthly_amount(self) -> int:
        """Payout normalized to a monthly amount in whole rupees."""
        return round_rupees(self.amount * MONTHLY_MULTIPLIERS[self.frequency])


class BudgetProfile(BaseModel):
    """
    Profile summary a budget is generated from.
    
    The ranges here are the documented input domain of the allocation
    engine. Anything outside them is rejected before the engine runs.
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    monthly_income: float = Field(
        ...,
        gt=0,
        le=MAX_RUPEE_AMOUNT,
        allow_inf_nan=False,
        description="Declared monthly income in INR"
    )
    city: str = Field(
        default="",
        max_length=100,
        description="City of residence (unknown cities use national averages)"
    )
    family_size: int = Field(
        ...,
        ge=1,
        le=20,
        description="Number of people supported by this income"
    )
    age: int = Field(
        ...,
        ge=18,
        le=100,
        description="Age of the earner"
    )
    occupation: Optional[str] = Field(
        default=None,
        max_length=100,
    )
    income_sources: list[IncomeSource] = Field(default_factory=list)
    
    @property
    def included_sources_total(self) -> int:
        """Monthly total of the sources marked for inclusion."""
        return sum(
            source.monthly_amount
            for source in self.income_sources
            if source.include_in_budget
        )
    
    @property
    def budget_income(self) -> float:
        """
        Income the budget is computed from.
        
        Included income sources win when they add up to something;
        otherwise the declared monthly income is used.
        """
        total = self.included_sources_total
        if total > 0:
            return float(total)
        return self.monthly_income
    
    @property
    def stable_sources_total(self) -> float:
        """
        Monthly income from included sources marked stable.
        
        Without any income sources the declared income counts as stable.
        """
        if not self.income_sources:
            return self.monthly_income
        return sum(
            source.monthly_amount
            for source in self.income_sources
            if source.include_in_budget and source.is_stable
        )
    
    @property
    def income_stability_ratio(self) -> float:
        """Share (0-1) of the included income that is stable."""
        if not self.income_sources:
            return 1.0
        total = self.included_sources_total
        if total == 0:
            return 1.0
        return self.stable_sources_total / total


# =============================================================================
# ALLOCATION MODELS
# =============================================================================

class CategoryAllocation(BaseModel):
    """Allocation for one category."""
    
    category: str = Field(
        ...,
        min_length=1,
        description="Category identifier"
    )
    amount: int = Field(
        ...,
        ge=0,
        description="Monthly amount in whole rupees"
    )
    percentage: float = Field(
        ...,
        ge=0.0,
        description="Share of the total budget (0-1)"
    )
    
    @property
    def percent(self) -> float:
        """Share of the total budget on a 0-100 scale."""
        return self.percentage * 100


class BudgetAllocation(BaseModel):
    """
    Result of the allocation engine.
    
    Computed fresh on every generation and overwritten on regeneration.
    A user customization replaces category amounts in place and flags
    the allocation as customized.
    """
    
    budget_id: UUID = Field(
        default_factory=uuid4,
        description="Unique allocation ID"
    )
    categories: dict[str, CategoryAllocation] = Field(
        ...,
        description="Allocation per category"
    )
    total_budget: float = Field(
        ...,
        gt=0,
        description="Income the allocation was computed from"
    )
    total_allocated: int = Field(
        ...,
        ge=0,
        description="Sum of all category amounts"
    )
    savings_amount: int = Field(
        default=0,
        ge=0,
    )
    savings_percentage: float = Field(
        default=0.0,
        ge=0.0,
    )
    generated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_customized: bool = False
    customized_at: Optional[datetime] = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Which tables and brackets produced this allocation"
    )
    
    @property
    def unallocated(self) -> float:
        """Income left over after all category amounts (negative if over)."""
        return self.total_budget - self.total_allocated
    
    @property
    def is_overallocated(self) -> bool:
        """Check if categories add up to more than the budget."""
        return self.total_allocated > self.total_budget
    
    def percentage_of(self, category: str) -> float:
        """Share of a category on a 0-100 scale (0 if absent)."""
        allocation = self.categories.get(category)
        return allocation.percent if allocation else 0.0


# =============================================================================
# ASSESSMENT MODELS
# =============================================================================

class BudgetHealth(BaseModel):
    """Overall health assessment of an allocation."""
    
    score: int = Field(
        ...,
        ge=0,
        le=100,
    )
    grade: str = Field(
        ...,
        pattern="^(A\\+|A|B\\+|B|C)$",
    )
    status: str = Field(
        ...,
        description="Healthy, Needs Improvement or Concerning"
    )
    issues: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)


class SavingsAnalysis(BaseModel):
    """How the savings allocation compares with the income bracket target."""
    
    current_rate: float
    target_rate: float
    minimum_rate: float
    monthly_amount: int
    yearly_amount: int
    ten_year_projection: int
    status: str
    recommendation: str


class HousingAnalysis(BaseModel):
    """Housing cost against the usual share-of-income thresholds."""
    
    amount: int
    percentage: float = Field(..., description="Share of income on a 0-100 scale")
    status: str = Field(..., description="Excellent, Good, Acceptable or High")
    recommendation: str


class LifestyleBalance(BaseModel):
    """Split between discretionary spending, essentials and savings."""
    
    discretionary_percentage: float
    essential_percentage: float
    savings_percentage: float
    balance: str = Field(..., description="Conservative, Balanced or Liberal")
    recommendation: str


# =============================================================================
# STORED DOCUMENT
# =============================================================================

class BudgetRecord(BaseModel):
    """
    The stored budget for one user.
    
    Denormalized on purpose: one record per user holding the profile it
    was generated from, the allocation and its health assessment.
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    user_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    profile: BudgetProfile
    allocation: BudgetAllocation
    health: BudgetHealth
    updated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    
    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        """User IDs are used as sheet keys, so no tabs or newlines."""
        if any(c in v for c in "\t\r\n"):
            raise ValueError("User ID cannot contain tabs or newlines")
        return v
