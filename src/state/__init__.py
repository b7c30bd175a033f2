"""Session state package."""

from src.state.store import (
    FinanceSnapshot,
    FinanceStore,
    InvalidInputError,
    is_provisional,
)

__all__ = [
    "FinanceSnapshot",
    "FinanceStore",
    "InvalidInputError",
    "is_provisional",
]
