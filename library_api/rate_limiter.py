from __future__ import annotations

from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from library_api import auth
from library_api.config import settings
from library_api.exceptions import AuthenticationError


def _get_bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def rate_limit_key(request: Request) -> str:
    token = _get_bearer_token(request)
    if token:
        try:
            # expired tokens still identify the caller for throttling purposes
            payload = auth.get_principal_from_expired_token(token)
            user_id = payload.get("sub")
            if user_id is not None:
                return f"user:{user_id}"
        except AuthenticationError:
            pass
    return get_remote_address(request)


def default_limit() -> str:
    return settings.RATE_LIMIT


# every route opts in with @limiter.limit(default_limit)
limiter = Limiter(key_func=rate_limit_key, enabled=settings.RATE_LIMIT_ENABLED)
