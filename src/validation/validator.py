"""
Two-Stage Profile Validation

DESIGN DECISION: A profile is validated in two distinct stages before a
budget is generated from it.

STAGE 1 - SCHEMA VALIDATION:
- Type checking
- Required field presence
- Range checks (income > 0, family size 1-20, age 18-100)
- This is where the allocation engine's input domain is enforced

STAGE 2 - SEMANTIC VALIDATION:
- Implausibly low or high incomes
- Cities without cost-of-living data
- Family sizes beyond the explicit tables
- Income sources that disagree with the declared income
- Budgets resting mostly on unstable income
- This catches inputs that are legal but probably wrong

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can review.
"""

from typing import Any, Optional

from pydantic import ValidationError

from src.budget.tables import DEFAULT_CITY, FAMILY_BASELINE_SIZE, resolve_city
from src.config import get_settings
from src.models.budget import BudgetProfile
from src.models.validation import ValidationIssue, ValidationResult


# Below this share of stable income the profile gets an info note
LOW_STABILITY_RATIO = 0.5

# Suggested fixes for schema errors, by top-level field
SCHEMA_FIXES = {
    "monthly_income": "Enter your take-home income per month in rupees",
    "family_size": "Enter the number of people (1-20) supported by this income",
    "age": "Enter an age between 18 and 100",
    "city": "Enter the name of the city you live in",
    "income_sources": "Check each income source has a name and a non-negative amount",
}


class ProfileValidator:
    """
    Validates a raw profile through a two-stage pipeline.
    
    Stage 1: Schema validation (builds the BudgetProfile)
    Stage 2: Semantic validation (plausibility checks on the profile)
    """
    
    def __init__(self):
        self._settings = get_settings().budget
    
    def _validate_schema(
        self,
        profile_data: dict[str, Any],
    ) -> tuple[Optional[BudgetProfile], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.
        
        Returns: (profile_or_none, list_of_issues)
        """
        try:
            return BudgetProfile.model_validate(profile_data), []
        except ValidationError as e:
            issues = []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"]) or "profile"
                top_level = str(error["loc"][0]) if error["loc"] else "profile"
                issue_type = "missing" if error["type"] == "missing" else "invalid_value"
                issues.append(ValidationIssue(
                    field=location,
                    issue_type=issue_type,
                    message=f"{location}: {error['msg']}",
                    severity="error",
                    suggested_fix=SCHEMA_FIXES.get(top_level),
                ))
            return None, issues
    
    def _validate_semantic(
        self,
        profile: BudgetProfile,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.
        
        Returns: (is_valid, list_of_issues)
        """
        issues = []
        
        if profile.monthly_income < self._settings.min_monthly_income:
            issues.append(ValidationIssue(
                field="monthly_income",
                issue_type="suspicious_value",
                message=(
                    f"Monthly income (₹{profile.monthly_income:,.0f}) is below "
                    f"₹{self._settings.min_monthly_income:,.0f}"
                ),
                severity="warning",
                suggested_fix="Make sure this is a monthly amount, not a daily or weekly one",
            ))
        
        if profile.monthly_income > self._settings.high_income_warning:
            issues.append(ValidationIssue(
                field="monthly_income",
                issue_type="suspicious_value",
                message=(
                    f"Monthly income (₹{profile.monthly_income:,.0f}) seems unusually high"
                ),
                severity="warning",
                suggested_fix="Make sure this is a monthly amount, not an annual one",
            ))
        
        if resolve_city(profile.city) == DEFAULT_CITY:
            city_label = profile.city or "No city"
            issues.append(ValidationIssue(
                field="city",
                issue_type="unrecognized",
                message=(
                    f"{city_label} has no cost-of-living data; "
                    "national averages will be used"
                ),
                severity="info",
            ))
        
        if profile.family_size > FAMILY_BASELINE_SIZE:
            issues.append(ValidationIssue(
                field="family_size",
                issue_type="extrapolated",
                message=(
                    f"Family of {profile.family_size} is scaled from the "
                    f"{FAMILY_BASELINE_SIZE}-person allocation"
                ),
                severity="info",
            ))
        
        if profile.income_sources:
            sources_total = profile.included_sources_total
            if sources_total == 0:
                issues.append(ValidationIssue(
                    field="income_sources",
                    issue_type="not_included",
                    message="No income source is included in the budget",
                    severity="info",
                    suggested_fix="The declared monthly income will be used instead",
                ))
            else:
                gap = abs(sources_total - profile.monthly_income) / profile.monthly_income
                if gap > self._settings.income_mismatch_tolerance:
                    issues.append(ValidationIssue(
                        field="income_sources",
                        issue_type="inconsistent",
                        message=(
                            f"Income sources add up to ₹{sources_total:,} per month "
                            f"but declared income is ₹{profile.monthly_income:,.0f}"
                        ),
                        severity="warning",
                        suggested_fix=(
                            "The budget uses the income sources; "
                            "update them or the declared income"
                        ),
                    ))
                
                if profile.income_stability_ratio < LOW_STABILITY_RATIO:
                    issues.append(ValidationIssue(
                        field="income_sources",
                        issue_type="unstable_income",
                        message=(
                            f"Only {profile.income_stability_ratio:.0%} of budgeted "
                            "income comes from stable sources"
                        ),
                        severity="info",
                        suggested_fix=(
                            f"Consider budgeting on stable income "
                            f"(₹{profile.stable_sources_total:,.0f} per month)"
                        ),
                    ))
        
        is_valid = not any(issue.severity == "error" for issue in issues)
        
        return is_valid, issues
    
    def validate(
        self,
        profile_data: dict[str, Any],
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.
        
        Args:
            profile_data: Raw profile fields (e.g. from a form or request body)
        
        Returns:
            ValidationResult with all issues found and, when stage 1
            passed, the parsed profile
        """
        all_issues = []
        
        # Stage 1: Schema validation
        profile, schema_issues = self._validate_schema(profile_data)
        all_issues.extend(schema_issues)
        schema_valid = profile is not None
        
        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if profile is not None:
            semantic_valid, semantic_issues = self._validate_semantic(profile)
            all_issues.extend(semantic_issues)
        
        warnings = [
            issue.message for issue in all_issues if issue.severity == "warning"
        ]
        
        is_valid = schema_valid and semantic_valid
        can_generate = profile is not None and not any(
            issue.severity == "error" for issue in all_issues
        )
        
        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            can_generate=can_generate,
            profile=profile,
            issues=all_issues,
            warnings=warnings,
        )
    
    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ Profile looks good! Your budget is ready."
        
        lines = []
        
        if not result.schema_valid:
            lines.append("❌ Some profile details are missing or out of range:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")
        
        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")
        
        if result.can_generate:
            lines.append("")
            lines.append("Your budget was generated, but please review these details.")
        else:
            lines.append("")
            lines.append("Please fix the issues above before generating a budget.")
        
        return "\n".join(lines).strip()
