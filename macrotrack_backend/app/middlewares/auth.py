from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional
from flask import current_app, request, g

from ..errors import AuthError
from ..extensions import get_store

logger = logging.getLogger(__name__)


def _get(obj: Any, key: str) -> Any:
    # supabase-py may return a dict or an object with attributes
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _bearer_token() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def _parse_user_id(raw: str) -> int:
    try:
        uid = int(raw)
    except (TypeError, ValueError):
        raise AuthError("Unauthorized (dev): X-User-Id must be an integer user id")
    if uid <= 0:
        raise AuthError("Unauthorized (dev): X-User-Id must be positive")
    return uid


def resolve_user_id(token: str) -> int:
    """Map a Supabase access token to the app's integer user id, creating the users row on first login."""
    store = get_store()
    auth_user = store.verify_token(token)
    open_id = _get(auth_user, 'id') if auth_user else None
    if not open_id:
        raise AuthError("Invalid or expired authentication token")

    email = _get(auth_user, 'email')
    meta = _get(auth_user, 'user_metadata') or {}
    name = (meta.get('name') or meta.get('full_name')) if isinstance(meta, dict) else None
    if not name and email:
        name = email.split('@')[0]

    row = store.upsert_user(str(open_id), email=email, name=name)
    if not row or row.get('id') is None:
        row = store.get_user_by_open_id(str(open_id))
    if not row or row.get('id') is None:
        raise AuthError("Failed to create or retrieve user")
    return int(row['id'])


def require_auth(fn: Callable):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not current_app.config.get("REQUIRE_JWT", True):
            # Dev mode: a real token still wins; otherwise X-User-Id or DEMO_USER_ID
            if token:
                try:
                    g.user_id = resolve_user_id(token)
                    return fn(*args, **kwargs)
                except AuthError:
                    pass
            raw = request.headers.get('X-User-Id') or current_app.config.get("DEMO_USER_ID")
            if not raw:
                raise AuthError(
                    "Unauthorized (dev): Provide X-User-Id header, set DEMO_USER_ID in .env, "
                    "or enable REQUIRE_JWT=true and login.")
            g.user_id = _parse_user_id(raw)
            return fn(*args, **kwargs)

        if not token:
            raise AuthError("Missing Bearer token")
        g.user_id = resolve_user_id(token)
        logger.debug("Authenticated user %s", g.user_id)
        return fn(*args, **kwargs)
    return wrapper
