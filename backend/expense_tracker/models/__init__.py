"""Models package - Import all models for SQLAlchemy registration."""
from expense_tracker.models.user import User
from expense_tracker.models.transaction import Transaction, TransactionType

__all__ = [
    "User",
    "Transaction",
    "TransactionType",
]
