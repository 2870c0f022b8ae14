"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (access and refresh tokens, separate secrets)
- JTI generation for refresh token identifiers
- structural guards for decoded claims
"""
from __future__ import annotations

import time
import uuid
from typing import Any, Dict, Optional, Tuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from flask import current_app

ph = PasswordHasher()


class InvalidToken(Exception):
    """Signature, expiry or format check failed."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID), 128 random bits.
    """
    return str(uuid.uuid4())


def _now() -> int:
    return int(time.time())


def _encode(payload: Dict[str, Any], secret: str) -> str:
    return jwt.encode(payload, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def issue_access_token(user_id: str, role: str) -> str:
    """Short-lived token read by the access gate on every protected request."""
    now = _now()
    lifetime = int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds())
    payload = {"id": str(user_id), "role": role, "iat": now, "exp": now + lifetime}
    return _encode(payload, current_app.config["ACCESS_TOKEN_SECRET"])


def issue_refresh_token(
    user_id: str,
    role: str,
    expires_in: Optional[int] = None,
    now: Optional[int] = None,
) -> Tuple[str, str]:
    """
    Sign a refresh token and return (token, jti).

    expires_in defaults to the configured refresh lifetime (login/register).
    Rotation passes the remaining lifetime of the old token together with the
    `now` it was computed from, so the absolute expiry carries over unchanged.
    """
    now = _now() if now is None else int(now)
    if expires_in is None:
        expires_in = int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds())
    jti = generate_jti()
    payload = {
        "id": str(user_id),
        "role": role,
        "jti": jti,
        "iat": now,
        "exp": now + max(0, int(expires_in)),
    }
    return _encode(payload, current_app.config["REFRESH_TOKEN_SECRET"]), jti


def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT: signature and expiry.
    Raises InvalidToken on any failure.
    """
    if not token or not isinstance(token, str):
        raise InvalidToken("Missing token")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(f"Invalid token: {exc}") from exc


def verify_access_token(token: str) -> Dict[str, Any]:
    return verify_token(token, current_app.config["ACCESS_TOKEN_SECRET"])


def verify_refresh_token(token: str) -> Dict[str, Any]:
    return verify_token(token, current_app.config["REFRESH_TOKEN_SECRET"])


def decode_unverified(token: str) -> Optional[Dict[str, Any]]:
    """
    Read claims WITHOUT checking the signature.
    For logging and inspection only, never for an auth decision.
    """
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.InvalidTokenError:
        return None


def _is_str(value) -> bool:
    return isinstance(value, str)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_access_claims(value) -> bool:
    """True when value carries id/role strings and iat/exp integers."""
    if not isinstance(value, dict):
        return False
    return (
        _is_str(value.get("id"))
        and _is_str(value.get("role"))
        and _is_int(value.get("iat"))
        and _is_int(value.get("exp"))
    )


def is_refresh_claims(value) -> bool:
    """Access-claims shape plus a string jti."""
    return is_access_claims(value) and _is_str(value.get("jti"))


def session_from_claims(claims: Dict[str, Any]) -> Dict[str, Any]:
    """Client-visible projection of verified refresh claims."""
    return {
        "id": claims["id"],
        "role": claims["role"],
        "sessionExp": claims["exp"],
        "sessionIat": claims["iat"],
    }
