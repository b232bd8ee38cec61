"""
Tests for configuration loading.
"""

import pytest

from src.config import BudgetSettings, validate_all_settings


class TestBudgetSettings:
    """Tests for budget thresholds and overrides."""
    
    def test_defaults(self):
        """Test default thresholds."""
        settings = BudgetSettings()
        assert settings.min_monthly_income == 1000.0
        assert settings.income_mismatch_tolerance == 0.10
    
    def test_unbalanced_percentages_warn(self):
        """Test overrides that don't sum to 1 warn but load."""
        with pytest.warns(UserWarning, match="sum to 0.50"):
            settings = BudgetSettings(base_percentages={"savings": 0.5})
        assert settings.base_percentages == {"savings": 0.5}
    
    def test_tolerance_bounds(self):
        """Test the mismatch tolerance is a fraction."""
        with pytest.raises(ValueError):
            BudgetSettings(income_mismatch_tolerance=1.5)
    
    def test_validate_all_settings_reports_budget(self):
        """Test the startup check covers the budget section."""
        results = validate_all_settings()
        assert results["budget"] is True
        assert "google_sheets" in results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
