"""
Authentication blueprint:
- POST   /auth/register
- POST   /auth/login    -> access token in the body, refresh token in a cookie
- POST   /auth/refresh  -> rotates the refresh cookie, returns a new access token
- DELETE /auth/logout   -> clears the stored refresh session and the cookie

The refresh token lives only in an HttpOnly cookie. Each refresh replaces the
user's single stored session id, so a replayed or stale cookie is rejected
with 401 INVALID_SESSION and removed.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema
from user_auth import LogoutResult, SessionTokens

from utils.decorators import (
    forget_session_cookie,
    get_auth_flow,
    session_token,
    set_session_cookie,
)
from utils.security import hash_password

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()


def session_response(tokens: SessionTokens):
    """Login/refresh payload plus the rotated refresh cookie."""
    user = dict(user_out_schema.dump(tokens.user), sub=tokens.access.subject)
    response = jsonify(
        {
            "token": tokens.access.token,
            "expires": tokens.expires,
            "user": user,
        }
    )
    return set_session_cookie(response, tokens.refresh), 200


@bp.post("/register")
def register():
    """
    register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        abort(409, description="Email already registered")

    user = User(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        activated=True,
    )
    storage.new(user)
    storage.save()

    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: returns an access token and sets the refresh token cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns token, expires, user)
      404:
        description: Invalid credentials
    """
    forget_session_cookie()
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    tokens = get_auth_flow().login(payload["email"], payload["password"])
    return session_response(tokens)


@bp.post("/refresh")
def refresh():
    """
    Rotate the refresh token cookie and obtain a new access token
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (returns token, expires, user)
      401:
        description: Missing, expired or revoked refresh token
    """
    token = session_token()
    if not token:
        abort(401, description="Not logged in")
    tokens = get_auth_flow().refresh(token, clear_credential=forget_session_cookie)
    return session_response(tokens)


@bp.delete("/logout")
def logout():
    """
    logout: revokes the refresh session
    ---
    tags:
      - Auth
    responses:
      200:
        description: Logged out
      401:
        description: No active session
      500:
        description: Session could not be deleted
    """
    result = get_auth_flow().logout(session_token())
    if result is LogoutResult.ALREADY_LOGGED_OUT:
        abort(401, description="Not logged in")
    forget_session_cookie()
    return jsonify({"status": result.value}), 200
