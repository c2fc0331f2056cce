"""
Flask glue between requests and the token layer:
- get_auth_flow(): the AuthFlow wired by create_app()
- current_user(): user behind the Bearer access token, memoised per request
- jwt_required(): 401 unless current_user() resolves
- session_token() / forget_session_cookie(): the refresh cookie
"""
from __future__ import annotations

from functools import wraps

from flask import abort, after_this_request, current_app, g, request

from user_auth import AuthFlow, DecodeError, UserNotFoundError

_MISSING = object()


def get_auth_flow() -> AuthFlow:
    return current_app.extensions["user_auth"]


def bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def current_user():
    """Return the authenticated user or None; decoded at most once per request."""
    cached = g.get("_current_user", _MISSING)
    if cached is not _MISSING:
        return cached

    user = None
    token = bearer_token()
    if token:
        try:
            user = get_auth_flow().current_user(token)
        except (DecodeError, UserNotFoundError) as exc:
            current_app.logger.debug("Access token rejected: %s", exc)
    g._current_user = user
    return user


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None:
                abort(401, description="Missing or invalid access token")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def session_cookie_key() -> str:
    return current_app.config["SESSION_COOKIE_KEY"]


def session_token() -> str | None:
    return request.cookies.get(session_cookie_key()) or None


def set_session_cookie(response, refresh_token):
    g._session_cookie_set = True
    response.set_cookie(
        session_cookie_key(),
        value=refresh_token.token,
        expires=refresh_token.expires,
        secure=current_app.config["SESSION_COOKIE_SECURE"],
        httponly=True,
        samesite="Lax",
    )
    return response


def forget_session_cookie():
    """Expire the refresh cookie at the end of this request unless a new one is set."""
    if g.get("_forget_session_cookie"):
        return
    g._forget_session_cookie = True

    @after_this_request
    def _delete(response):
        if g.get("_session_cookie_set"):
            return response
        response.delete_cookie(session_cookie_key(), samesite="Lax")
        return response
