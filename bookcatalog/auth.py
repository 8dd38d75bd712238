"""
Bearer-token authentication.

:func:`require_auth` is a FastAPI dependency; add it to any route (or
router) that needs an authenticated caller. On success the decoded
claims and the raw token are stored on ``request.state`` and returned
as an :class:`AuthenticatedUser`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Request

from .context import AppContext, get_context
from .errors import AuthError, AuthErrorCode
from .models import AuthenticatedUser

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_token(authorization: Optional[str]) -> Optional[str]:
    # A header without the Bearer prefix is passed on as the token itself.
    if not authorization:
        return None
    token = authorization
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token.strip() or None


def verify_token(
    token: str, secret: str, algorithm: str = "HS256", now: Optional[float] = None
) -> Dict[str, Any]:
    """Verify the signature of ``token`` and check its expiry.

    Expiry is checked here rather than by PyJWT so that a token expiring
    exactly at ``now`` is rejected.

    Raises:
        AuthError: INVALID_TOKEN for a bad signature, a malformed token or a
            non-numeric ``exp`` claim,
            TOKEN_EXPIRED when ``now >= exp``.
    """
    try:
        claims = jwt.decode(
            token, secret, algorithms=[algorithm], options={"verify_exp": False}
        )
    except jwt.InvalidTokenError:
        raise AuthError(AuthErrorCode.INVALID_TOKEN) from None

    exp = claims.get("exp")
    if exp is not None:
        try:
            expiry = float(exp)
        except (TypeError, ValueError):
            raise AuthError(AuthErrorCode.INVALID_TOKEN) from None
        current = time.time() if now is None else now
        if current >= expiry:
            raise AuthError(AuthErrorCode.TOKEN_EXPIRED)
    return claims


def issue_token(
    subject: str, secret: str, expires_in: int = 3600, algorithm: str = "HS256", **claims: Any
) -> str:
    payload = dict(claims)
    payload["sub"] = subject
    payload["iat"] = int(time.time())
    payload["exp"] = int(time.time()) + expires_in
    return jwt.encode(payload, secret, algorithm=algorithm)


async def require_auth(
    request: Request, context: AppContext = Depends(get_context)
) -> AuthenticatedUser:
    try:
        token = extract_token(request.headers.get("Authorization"))
        if token is None:
            raise AuthError(AuthErrorCode.AUTH_REQUIRED)

        claims = verify_token(
            token, context.settings.jwt_secret, context.settings.jwt_algorithm
        )
        request.state.user = claims
        request.state.token = token
        return AuthenticatedUser(claims=claims, token=token)
    except AuthError:
        raise
    except Exception:
        logger.exception("Auth middleware error")
        raise AuthError(AuthErrorCode.AUTH_ERROR) from None
