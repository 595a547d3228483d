"""
Supabase Auth authentication.

Provides:
- bearer_token(): Extract the JWT from an Authorization header
- get_current_user(): Resolve the JWT to an AuthUser (cached)
"""
import hashlib

import httpx
from fastapi import HTTPException
from supabase_auth.errors import AuthError

from core.cache import cache_get, cache_set
from core.database import get_supabase
from core.models.user import AuthUser


def bearer_token(authorization: str) -> str:
    """Extract the token from an `Authorization: Bearer <jwt>` header."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Expected a Bearer token")
    return token.strip()


def get_current_user(authorization: str) -> AuthUser:
    """
    Verify the access token with Supabase Auth and return the user.
    Results are cached by token digest for the auth pool TTL.
    """
    token = bearer_token(authorization)

    cache_key = f"token:{hashlib.sha256(token.encode()).hexdigest()}"
    cached = cache_get("auth", cache_key)
    if cached is not None:
        return cached

    try:
        response = get_supabase().auth.get_user(token)
    except (AuthError, httpx.HTTPError) as e:
        print(f"[Auth] Token rejected: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if not response or not response.user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = AuthUser(id=response.user.id, email=response.user.email)
    cache_set("auth", cache_key, user)
    return user
