"""Form input validation package."""

from src.validation.validator import FinanceInputValidator

__all__ = ["FinanceInputValidator"]
