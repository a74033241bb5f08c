# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import hmac
import logging
import time
from typing import Any
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys beat no keys
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _legacy_secret() -> tuple[str, str]:
    """The HS256 secret, refusing to verify against an empty key."""
    if not settings.SUPABASE_JWT_SECRET:
        raise JWTError("HS256 verification not configured")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def _get_signing_key(token: str) -> tuple[Any, str]:
    """
    Get the appropriate signing key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification

    Raises:
        JWTError: The token needs the HS256 secret and none is configured
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        return _legacy_secret()

    alg = unverified_header.get("alg", "HS256")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        return _legacy_secret()

    if kid:
        jwks = _fetch_jwks()
        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}, falling back to HS256")
    return _legacy_secret()


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and build the AuthUser.

    Shared by the HTTP dependency and the WebSocket endpoint.

    Raises:
        JWTError: Bad signature, expired token, or missing/malformed subject
    """
    signing_key, algorithm = _get_signing_key(token)

    payload = jwt.decode(
        token,
        signing_key,
        algorithms=[algorithm],
        audience="authenticated"
    )

    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise JWTError("malformed user ID")

    metadata = payload.get("user_metadata") or {}

    return AuthUser(
        id=user_uuid,
        email=payload.get("email"),
        team_id=metadata.get("team_id"),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Extract and validate user from Supabase JWT token.

    This dependency:
    1. Extracts the Bearer token from the Authorization header
    2. Verifies the JWT signature (supports ES256 and HS256)
    3. Validates the token hasn't expired
    4. Returns an AuthUser with the user's ID and email

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    try:
        user = decode_access_token(credentials.credentials)
        logger.debug(f"Authenticated user: {user.id}")
        return user

    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_service_role(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> None:
    """
    Allow only callers holding the service-role key.

    Guards the internal endpoints other backend functions and the scheduler
    call (job triggers, notification fan-out).

    Raises:
        HTTPException: 401 if the bearer token is not the service key
    """
    if not hmac.compare_digest(credentials.credentials, settings.SUPABASE_SERVICE_KEY):
        logger.warning("Rejected internal call without service-role key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Service role required",
            headers={"WWW-Authenticate": "Bearer"},
        )
