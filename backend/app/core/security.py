from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from fastapi import Depends, HTTPException, Request

from app.core.settings import Settings
from app.services.cache import TTLCache
from app.services.supabase_rest import SupabaseError, SupabaseRestClient


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    auth_user_id: str
    email: str
    role: str
    agency_id: str | None = None


def _require_supabase_config(app_settings: Settings) -> str:
    if not app_settings.supabase_url:
        raise HTTPException(status_code=500, detail="SUPABASE_URL is not configured")
    return app_settings.supabase_url


@lru_cache(maxsize=4)
def _jwks_client(jwks_url: str):
    import jwt

    return jwt.PyJWKClient(jwks_url)


def _decode_supabase_jwt(token: str, app_settings: Settings) -> dict[str, Any]:
    import jwt

    supabase_url = _require_supabase_config(app_settings).rstrip("/")
    jwks_url = f"{supabase_url}/auth/v1/.well-known/jwks.json"
    issuer = app_settings.supabase_jwt_issuer or f"{supabase_url}/auth/v1"
    audience = app_settings.supabase_jwt_audience or "authenticated"

    try:
        signing_key = _jwks_client(jwks_url).get_signing_key_from_jwt(token).key
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=["ES256", "RS256"],
            audience=audience,
            issuer=issuer,
            options={"require": ["exp", "sub"]},
        )
        return dict(payload)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def _get_bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization") or ""
    if not auth.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    return token


def get_supabase_client(request: Request) -> SupabaseRestClient:
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        raise HTTPException(status_code=500, detail="Supabase client is not configured")
    return client


def get_app_settings(request: Request) -> Settings:
    app_settings = getattr(request.app.state, "settings", None)
    if app_settings is None:
        raise HTTPException(status_code=500, detail="Application settings are not configured")
    return app_settings


def build_platform_user_cache(app_settings: Settings) -> TTLCache:
    return TTLCache(max_items=20000, ttl_s=app_settings.role_cache_ttl_s)


def get_platform_user_cache(request: Request) -> TTLCache:
    cache = getattr(request.app.state, "platform_user_cache", None)
    if cache is None:
        raise HTTPException(status_code=500, detail="Role cache is not configured")
    return cache


def _fetch_platform_user(
    client: SupabaseRestClient,
    cache: TTLCache,
    *,
    auth_user_id: str,
    user_token: str,
    service_role_key: str | None = None,
) -> dict[str, Any] | None:
    cache_key = f"platform_user:{auth_user_id}"
    cached = cache.get(cache_key)
    if isinstance(cached, dict):
        return cached

    # Without a service key the lookup runs under the caller's own RLS context.
    bearer = (service_role_key or user_token or "").strip()
    row = client.select_one(
        "platform_users",
        columns="id,email,role,agency_id,auth_user_id",
        filters={"auth_user_id": f"eq.{auth_user_id}"},
        bearer=bearer,
    )
    if row:
        cache.set(cache_key, row)
    return row


def resolve_current_user(claims: dict[str, Any], platform_user: dict[str, Any] | None) -> CurrentUser:
    auth_user_id = str(claims.get("sub") or "").strip()
    if not auth_user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not platform_user:
        raise HTTPException(status_code=401, detail="User not found in platform")

    email = str(platform_user.get("email") or claims.get("email") or "").strip()
    role = str(platform_user.get("role") or "").strip().lower()
    agency_id = str(platform_user.get("agency_id") or "").strip() or None
    return CurrentUser(
        id=str(platform_user.get("id") or auth_user_id),
        auth_user_id=auth_user_id,
        email=email,
        role=role,
        agency_id=agency_id,
    )


def get_current_user(
    request: Request,
    client: SupabaseRestClient = Depends(get_supabase_client),
    app_settings: Settings = Depends(get_app_settings),
    cache: TTLCache = Depends(get_platform_user_cache),
) -> CurrentUser:
    token = _get_bearer_token(request)
    claims = _decode_supabase_jwt(token, app_settings)
    auth_user_id = str(claims.get("sub") or "").strip()
    if not auth_user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        platform_user = _fetch_platform_user(
            client,
            cache,
            auth_user_id=auth_user_id,
            user_token=token,
            service_role_key=app_settings.supabase_service_role_key,
        )
    except SupabaseError as exc:
        logger.warning("auth.platform_user.lookup_failed user=%s status=%s", auth_user_id, exc.status)
        raise HTTPException(status_code=502, detail="Failed to resolve user role")

    user = resolve_current_user(claims, platform_user)
    logger.debug("auth.resolved user=%s role=%s", user.id, user.role)
    return user
