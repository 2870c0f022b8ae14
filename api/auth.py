"""
Authentication blueprint (registered at /api/auth):
- POST /login
- POST /logout
- GET  /session        (access cookie required)
- GET  /refresh-token

Tokens travel only in httpOnly cookies:
- accessToken: short-lived, path "/"
- refreshToken: longer-lived, path "/api/auth", rotated on every refresh;
  the previous jti goes onto the owner's blacklist at that moment
"""
from __future__ import annotations

import logging
import time

from flask import Blueprint, request
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from api.errors import Codes, error_response, success_response
from models import storage
from models.user import User
from models.schemas.user import UserLoginSchema
from utils import blacklist
from utils.cookies import clear_auth_cookies, read_refresh_cookie, set_auth_cookies
from utils.decorators import access_required
from utils.security import (
    InvalidToken,
    is_refresh_claims,
    issue_access_token,
    issue_refresh_token,
    session_from_claims,
    verify_password,
    verify_refresh_token,
)

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_login_schema = UserLoginSchema()

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."


def start_session(user: User, status: int, message: str, code: str):
    """
    Issue a fresh token pair for `user`, commit, and answer with the session.
    Shared by login and registration.
    """
    role = user.role_name
    refresh_token, _jti = issue_refresh_token(user.id, role)
    access_token = issue_access_token(user.id, role)
    claims = verify_refresh_token(refresh_token)

    storage.new(user)
    storage.save()

    resp, status = success_response(session_from_claims(claims), message, status, code=code)
    set_auth_cookies(resp, access_token, refresh_token)
    return resp, status


def _invalid_credentials():
    return error_response(Codes.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE, 400)


@bp.post("/login")
def login():
    """
    Log in: sets accessToken + refreshToken cookies, returns the session
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
        description: OK (session in data)
      400:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    try:
        data = user_login_schema.load(payload)
    except ValidationError:
        return _invalid_credentials()

    session = storage.get_session()
    user = session.query(User).filter(User.email == data["email"]).first()
    if user is None or not user.is_active:
        return _invalid_credentials()
    if not verify_password(data["password"], user.password_hash):
        return _invalid_credentials()

    blacklist.sweep_expired(user)
    logger.info("User %s logged in", user.id)
    return start_session(user, 200, "Login success.", Codes.OK)


@bp.post("/logout")
def logout():
    """
    Log out: revokes the refresh token if one is present, clears both cookies.
    Never requires authentication and never fails.
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK
    """
    refresh_token = read_refresh_cookie(request)
    if refresh_token:
        try:
            claims = verify_refresh_token(refresh_token)
        except InvalidToken:
            claims = None
        if is_refresh_claims(claims):
            try:
                user = storage.get(User, claims["id"])
                if user is not None:
                    blacklist.sweep_expired(user)
                    blacklist.revoke(user, claims["jti"], claims["exp"])
                    storage.save()
                    logger.info("User %s logged out", claims["id"])
            except SQLAlchemyError:
                # The cookies are cleared regardless
                storage.rollback()
                logger.exception("Failed to blacklist refresh token on logout for user %s", claims["id"])

    resp, status = success_response(None, "Log out successful.")
    clear_auth_cookies(resp)
    return resp, status


@bp.get("/session")
@access_required()
def get_session():
    """
    Current session, derived from the refresh token's claims
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK ({id, role, sessionExp, sessionIat})
      401:
        description: Unauthorized
    """
    refresh_token = read_refresh_cookie(request)
    if not refresh_token:
        return error_response(Codes.UNAUTHORIZED, "Invalid `refreshToken`. Session data denied.", 401)
    try:
        claims = verify_refresh_token(refresh_token)
    except InvalidToken:
        return error_response(Codes.UNAUTHORIZED, "Invalid `refreshToken`. Session data denied.", 401)

    if not is_refresh_claims(claims):
        return error_response(
            Codes.INTERNAL_SERVER_ERROR, "Session request failed at RefreshTokenData check.", 500
        )
    return success_response(session_from_claims(claims), "Success.")


@bp.get("/refresh-token")
def refresh_access_token():
    """
    Rotate the refresh token and issue a new access token.
    The new refresh token keeps the absolute expiry of the old one.
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (cookies replaced, no body data)
      401:
        description: Missing, invalid, expired or blacklisted refresh token
    """
    refresh_token = read_refresh_cookie(request)
    if not refresh_token:
        return error_response(Codes.UNAUTHORIZED, "A `refreshToken` must be sent with the request.", 401)

    try:
        claims = verify_refresh_token(refresh_token)
    except InvalidToken:
        return error_response(Codes.UNAUTHORIZED, "Invalid `refreshToken`.", 401)

    if not is_refresh_claims(claims):
        return error_response(Codes.UNAUTHORIZED, "The `refreshToken` was not of type `RefreshTokenData`.", 401)

    user = storage.get(User, claims["id"])
    if user is None or not user.is_active:
        return error_response(Codes.UNAUTHORIZED, "User not found.", 401)

    if blacklist.contains(user, claims["jti"]):
        logger.warning("Blacklisted refresh token reused for user %s (jti=%s)", user.id, claims["jti"])
        return error_response(Codes.BLACKLISTED_TOKEN, "The `refreshToken` was previously blacklisted.", 401)

    now = int(time.time())
    remaining = max(0, claims["exp"] - now)
    # Role comes from the stored user, not from the old claims
    new_refresh_token, _jti = issue_refresh_token(user.id, user.role_name, expires_in=remaining, now=now)
    new_access_token = issue_access_token(user.id, user.role_name)

    blacklist.sweep_expired(user)
    blacklist.revoke(user, claims["jti"], claims["exp"])
    storage.save()

    resp, status = success_response(None, "The request for a new `accessToken` was granted.")
    set_auth_cookies(resp, new_access_token, new_refresh_token, refresh_max_age=remaining)
    return resp, status
