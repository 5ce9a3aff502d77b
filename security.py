"""
Authentication and authorization helpers.

- bcrypt password hashes
- HS256 bearer tokens (PyJWT) carrying user id, username, role and permissions
- FastAPI dependencies: require_auth() and require_role()

Tokens are stateless: there is no refresh and no revocation list, a token
stays valid until it expires.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException, Request, status
from pydantic import ValidationError

from config import Settings
from logging_config import get_logger
from schemas import TokenClaims

logger = get_logger(__name__)

BCRYPT_ROUNDS = 12
EMPLOYEE_ROLES = ("employee", "admin")
TOKEN_INVALID = "token invalid"


class TokenError(Exception):
    pass


class AuthenticationError(Exception):
    """Login failure; reason is for logs only and never sent to the client."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# Built once at import, at production cost.
DUMMY_PASSWORD_HASH = bcrypt.hashpw(b"no-such-account", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def dummy_password_hash() -> str:
    """Fixed bogus hash with the same cost as real ones."""
    return DUMMY_PASSWORD_HASH


def authenticate(collection, username: str, password: str) -> Dict[str, Any]:
    """
    Look up username in the given collection and check the password.

    An unknown username still costs one bcrypt comparison (against the
    dummy hash) so both failure paths take the same time.
    """
    account = collection.find_one({"username": username})
    if not account:
        verify_password(password, dummy_password_hash())
        raise AuthenticationError("user_not_found")
    if not verify_password(password, account.get("password_hash") or ""):
        raise AuthenticationError("incorrect_password")
    if not account.get("is_active", True):
        raise AuthenticationError("account_deactivated")
    return account


def create_access_token(
    account: Dict[str, Any],
    settings: Settings,
    expires_hours: Optional[int] = None,
) -> str:
    now = datetime.now(timezone.utc)
    hours = expires_hours or settings.token_expiry_hours
    payload = {
        "user_id": str(account["_id"]),
        "username": account["username"],
        "role": account.get("role", "customer"),
        "full_name": account.get("full_name") or account["username"],
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    if account.get("permissions"):
        payload["permissions"] = list(account["permissions"])
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
        return TokenClaims(**payload)
    except jwt.ExpiredSignatureError as e:
        raise TokenError("expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenError(str(e)) from e
    except ValidationError as e:
        raise TokenError("malformed claims") from e


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_auth(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> TokenClaims:
    if not authorization or not authorization.lower().startswith("bearer "):
        logger.info("token_rejected", reason="missing_bearer")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=TOKEN_INVALID)
    token = authorization.split(" ", 1)[1].strip()
    try:
        claims = decode_access_token(token, settings)
    except TokenError as e:
        logger.info("token_rejected", reason=str(e))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=TOKEN_INVALID)
    request.state.user = claims
    return claims


def require_role(*roles: str, message: str = "Forbidden") -> Callable[..., TokenClaims]:
    """Dependency factory: 403 unless the token's role is one of roles."""

    def dependency(claims: TokenClaims = Depends(require_auth)) -> TokenClaims:
        if claims.role not in roles:
            logger.info("role_rejected", username=claims.username, role=claims.role, required=roles)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return claims

    return dependency
