"""Profile validation package."""

from src.validation.validator import ProfileValidator

__all__ = ["ProfileValidator"]
