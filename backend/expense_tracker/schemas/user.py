"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel, EmailStr
from typing import Optional


class UserCredentials(BaseModel):
    """Schema for registration and login; missing fields are reported by the service."""
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class AuthResponse(BaseModel):
    """Schema for a successful registration or login."""
    message: str
    email: EmailStr
    token: str
