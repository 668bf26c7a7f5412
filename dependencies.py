# dependencies.py
import logging
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

import crud
from config import settings
from database import database
from errors import Forbidden, InvalidToken, Unauthorized
from security import TokenService

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches our own error envelope
security = HTTPBearer(auto_error=False)

token_service = TokenService(settings.tokens)


def get_db():
    return database


def get_token_service() -> TokenService:
    return token_service


async def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Claims of a valid bearer access token; rejects the request otherwise."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token provided")
    return tokens.verify_access(credentials.credentials)


async def optional_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[dict]:
    """Claims when a valid token is presented, None for guests and bad tokens."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return tokens.verify_access(credentials.credentials)
    except InvalidToken:
        return None


async def get_current_admin(claims: dict = Depends(require_token), db=Depends(get_db)) -> dict:
    """Re-read the admin behind the token.

    A deleted admin's token stays cryptographically valid until it expires;
    this lookup is what stops it from authorizing anything.
    """
    try:
        admin_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        raise Forbidden("User not authenticated")

    admin = await crud.get_admin_user(db, admin_id)
    if admin is None:
        logger.warning(f"⚠️ Token presented for missing admin {admin_id}")
        raise Forbidden("Admin access required")
    return admin


def resolve_user_id(claims: Optional[dict], supplied: Optional[str]) -> Optional[str]:
    """Token subject wins over a client-supplied user id."""
    if claims and claims.get("sub"):
        return str(claims["sub"])
    return supplied or None
