# security.py
import logging
from datetime import datetime, timedelta
from typing import Optional

import jwt
from passlib.context import CryptContext

from config import TokenSettings
from errors import InvalidToken, SubjectNotFound

logger = logging.getLogger(__name__)

# ========== PASSWORD HASHING ==========
# bcrypt with a random per-hash salt, cost factor 10
password_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def get_password_hash(password: str) -> str:
    return password_ctx.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return password_ctx.verify(plain_password, hashed_password)
    except ValueError:
        # malformed stored hash
        return False


# ========== TOKENS ==========
ACCESS = "access"
REFRESH = "refresh"


class TokenService:
    """Issues and verifies stateless access and refresh tokens.

    Access tokens carry the subject id, email and role and live for
    ``access_ttl_minutes``. Refresh tokens carry only the subject id, live for
    ``refresh_ttl_days`` and are signed with a separate secret. There is no
    denylist: changing a secret is the only way to revoke issued tokens.
    """

    def __init__(self, config: TokenSettings):
        if config.access_secret == config.refresh_secret:
            raise ValueError("access and refresh tokens must use different secrets")
        self.config = config

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self.config.access_ttl_minutes)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(days=self.config.refresh_ttl_days)

    def _sign(self, claims: dict, secret: str, ttl: timedelta, now: Optional[datetime]) -> str:
        issued_at = now or datetime.utcnow()
        payload = dict(claims)
        payload.update({"iat": issued_at, "exp": issued_at + ttl})
        return jwt.encode(payload, secret, algorithm=self.config.algorithm)

    def issue_access_token(self, subject_id, email: str, role: str = "admin", now: Optional[datetime] = None) -> str:
        claims = {"sub": str(subject_id), "email": email, "role": role, "type": ACCESS}
        return self._sign(claims, self.config.access_secret, self.access_ttl, now)

    def issue_refresh_token(self, subject_id, now: Optional[datetime] = None) -> str:
        claims = {"sub": str(subject_id), "type": REFRESH}
        return self._sign(claims, self.config.refresh_secret, self.refresh_ttl, now)

    def verify(self, token: str, secret: str, token_type: Optional[str] = None) -> dict:
        """Return the claims of a well-signed, unexpired token.

        Every failure raises the same ``InvalidToken`` so callers cannot tell an
        expired token from a tampered one.
        """
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "sub"]},
                leeway=0,
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Token rejected: {type(e).__name__}")
            raise InvalidToken()

        if token_type and claims.get("type") != token_type:
            raise InvalidToken()
        return claims

    def verify_access(self, token: str) -> dict:
        return self.verify(token, self.config.access_secret, ACCESS)

    def verify_refresh(self, token: str) -> dict:
        return self.verify(token, self.config.refresh_secret, REFRESH)

    async def redeem_refresh(self, refresh_token: str, db) -> str:
        """Mint a new access token; the refresh token itself is not rotated."""
        import crud

        claims = self.verify_refresh(refresh_token)
        try:
            admin_id = int(claims["sub"])
        except (TypeError, ValueError):
            raise InvalidToken()

        admin = await crud.get_admin_user(db, admin_id)
        if not admin:
            raise SubjectNotFound()

        return self.issue_access_token(admin["id"], admin["email"], admin.get("role") or "admin")
