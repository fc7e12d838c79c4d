"""
Authentication routes for registration and login.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from expense_tracker.db.session import get_db
from expense_tracker.schemas.user import UserCredentials, AuthResponse
from expense_tracker.core.security import TokenIssuer, get_token_issuer
from expense_tracker.services.auth_service import register_user, login_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    credentials: UserCredentials,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """Register a new user and return a token."""
    user, token = register_user(db, credentials.email, credentials.password, issuer)
    return {"message": "User registered successfully", "email": user.email, "token": token}


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserCredentials,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """Login and get a JWT token."""
    user, token = login_user(db, credentials.email, credentials.password, issuer)
    return {"message": "Login Successful", "email": user.email, "token": token}
