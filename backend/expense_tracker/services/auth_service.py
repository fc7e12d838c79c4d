"""
Authentication service for registration and login.
"""
import logging
from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from expense_tracker.core.exceptions import DuplicateEmail, InvalidCredentials, ValidationError
from expense_tracker.core.security import TokenIssuer, hash_password, verify_password
from expense_tracker.models.user import User

logger = logging.getLogger(__name__)


def register_user(
    db: Session,
    email: Optional[str],
    password: Optional[str],
    issuer: TokenIssuer
) -> Tuple[User, str]:
    """Create a user with a hashed password and issue a token for them."""
    if not email or not password:
        raise ValidationError("Please fill all fields")
    
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise DuplicateEmail()
    
    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration of the same email
        db.rollback()
        raise DuplicateEmail()
    db.refresh(user)
    
    logger.info(f"Registered user {user.id}")
    return user, issuer.issue(user.id)


def login_user(
    db: Session,
    email: Optional[str],
    password: Optional[str],
    issuer: TokenIssuer
) -> Tuple[User, str]:
    """Check credentials and issue a token."""
    if not email or not password:
        raise ValidationError("Please fill all fields")
    
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise InvalidCredentials()
    
    logger.info(f"User {user.id} logged in")
    return user, issuer.issue(user.id)
