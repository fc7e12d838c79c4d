"""
Transaction model for income and expense records.
"""
from sqlalchemy import Column, String, Numeric, DateTime, Enum as SQLEnum, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from expense_tracker.core.utils import utcnow
from expense_tracker.db.base import BaseModel
import enum


class TransactionType(str, enum.Enum):
    """Transaction type enumeration."""
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(BaseModel):
    """A single income or expense owned by one user."""
    __tablename__ = "transactions"
    
    type = Column(
        SQLEnum(TransactionType, values_callable=lambda enum_cls: [member.value for member in enum_cls]),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(15, 2, asdecimal=False), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    date = Column(DateTime, default=utcnow, nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    # Relationships
    owner = relationship("User", back_populates="transactions")
