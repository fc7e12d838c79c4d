"""
User model for authentication.
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from expense_tracker.db.base import BaseModel


class User(BaseModel):
    """User identified by a unique email."""
    __tablename__ = "users"
    
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    
    # Relationships
    transactions = relationship("Transaction", back_populates="owner")
