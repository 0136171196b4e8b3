"""Authentication helpers and FastAPI security dependencies.

Bearer tokens are issued by the identity provider (AWS Cognito). When the
Cognito pool is configured, tokens are verified with RS256 against the
pool's JWKS (fetched and cached by `jwt.PyJWKClient`) and the issuer and
audience are checked. Otherwise tokens are verified with the shared
`JWT_SECRET`, which is what local development and the tests use.

The token's `sub` claim identifies the user (`User.cognito_sub`).
"""

import hmac
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .database import get_session

bearer_scheme = HTTPBearer()
_jwks_client: Optional[jwt.PyJWKClient] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _get_jwks_client() -> jwt.PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = jwt.PyJWKClient(settings.cognito_jwks_url, cache_keys=True)
    return _jwks_client


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        if settings.cognito_enabled:
            signing_key = _get_jwks_client().get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=settings.COGNITO_CLIENT_ID,
                issuer=settings.cognito_issuer,
            )
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("token expired")
    except jwt.PyJWTError:
        raise _unauthorized("invalid token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    session: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    The user is loaded through the request's session so routers can walk
    its relationships. Raises HTTPException(401) for any authentication
    issue.
    """
    payload = decode_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise _unauthorized("Invalid token payload (missing sub)")
    user = repositories.UserRepository(session).get_by_cognito_sub(sub)
    if not user:
        raise _unauthorized("User associated with token not found.")
    return user


def require_sync_key(x_sync_key: Optional[str] = Header(default=None)) -> None:
    """Guard for the identity-provider sync hook when `SYNC_API_KEY` is set."""
    if not settings.SYNC_API_KEY:
        return
    if not x_sync_key or not hmac.compare_digest(x_sync_key, settings.SYNC_API_KEY):
        raise HTTPException(status_code=401, detail="invalid sync key")
