# session_guard/api/middlewares/auth_middleware.py
from functools import wraps
from typing import Any, Callable, TypeVar

from flask import g, request

from session_guard.core.exceptions import UnauthorizedError
from session_guard.infrastructure.security.jwt_provider import JwtProvider

F = TypeVar("F", bound=Callable[..., Any])


def _get_bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    raise UnauthorizedError("Token ausente.")


def require_auth(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _get_bearer_token()
        claims = JwtProvider().decode(token)

        if claims.get("typ") != "access":
            raise UnauthorizedError("Token inválido.")

        g.auth = claims
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> str:
    if not hasattr(g, "auth"):
        raise UnauthorizedError("Token ausente.")
    return str(g.auth["sub"])


def current_family_id() -> str | None:
    if not hasattr(g, "auth"):
        return None
    fid = g.auth.get("fid")
    return str(fid) if fid else None
