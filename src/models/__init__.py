"""
Data Models Package

This package contains all Pydantic models used in the Budget Planner system.
All data flowing through the system must conform to these schemas.
"""

from src.models.budget import (
    BudgetAllocation,
    BudgetCategory,
    BudgetHealth,
    BudgetProfile,
    BudgetRecord,
    CategoryAllocation,
    CategoryWeight,
    IncomeFrequency,
    IncomeSource,
    HousingAnalysis,
    LifestyleBalance,
    SavingsAnalysis,
    round_rupees,
)
from src.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "BudgetAllocation",
    "BudgetCategory",
    "BudgetHealth",
    "BudgetProfile",
    "BudgetRecord",
    "CategoryAllocation",
    "CategoryWeight",
    "IncomeFrequency",
    "IncomeSource",
    "HousingAnalysis",
    "LifestyleBalance",
    "SavingsAnalysis",
    "round_rupees",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
