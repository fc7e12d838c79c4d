"""
Request dependencies shared by the API routes.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional
from expense_tracker.core.exceptions import Unauthenticated
from expense_tracker.core.security import TokenIssuer, get_token_issuer

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer)
) -> int:
    """
    Authorize the request from its bearer token.
    The verified user id is also bound to ``request.state.user_id``.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    
    user_id = issuer.verify(credentials.credentials)
    request.state.user_id = user_id
    return user_id
