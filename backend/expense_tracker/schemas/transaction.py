"""
Pydantic schemas for Transaction entity.
"""
from pydantic import BaseModel, BeforeValidator, Field
from typing import Annotated, List, Optional, Union
from datetime import date, datetime
from expense_tracker.core.utils import parse_iso_date_or_datetime
from expense_tracker.models.transaction import TransactionType

# Query bound: a plain date covers whole days, a datetime is an exact instant
DateBound = Annotated[Union[datetime, date], BeforeValidator(parse_iso_date_or_datetime)]


class TransactionCreate(BaseModel):
    """Schema for transaction creation."""
    type: Optional[str] = None
    amount: Optional[float] = Field(None, strict=True)  # strict: JSON booleans are not amounts
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[datetime] = None


class TransactionUpdate(BaseModel):
    """Schema for partial transaction update. Only fields sent by the client are applied."""
    type: Optional[str] = None
    amount: Optional[float] = Field(None, strict=True)
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[datetime] = None


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    id: int
    type: TransactionType
    amount: float
    description: Optional[str] = None
    category: str
    date: datetime
    owner_id: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


class CategoryTotal(BaseModel):
    """Expense total for one category."""
    category: str
    total: float
    count: int


class MonthlyTotal(BaseModel):
    """Income and expense totals for one calendar month (YYYY-MM)."""
    month: str
    income: float
    expense: float


class TransactionSummary(BaseModel):
    """Aggregates over the requester's filtered transactions."""
    income: float
    expense: float
    balance: float
    count: int
    categories: List[CategoryTotal] = []
    monthly: List[MonthlyTotal] = []
