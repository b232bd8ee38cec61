"""
Budget Planner - Source Package

Generates a personalized monthly budget from a household profile:
income, city, family size and age.

DESIGN PRINCIPLES:
1. Allocation is deterministic: same profile, same budget
2. Fail early, fail visibly
3. No silent corrections
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Planner Team"
