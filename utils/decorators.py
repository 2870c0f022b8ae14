from __future__ import annotations
from functools import wraps
import logging

from flask import request, g

from api.errors import Codes, error_response
from models import storage
from models.user import User
from utils.cookies import read_access_cookie
from utils.security import InvalidToken, verify_access_token

logger = logging.getLogger(__name__)


def access_required():
    """
    Gate a view behind a valid access-token cookie.

    The token only proves who the caller is. Role and active status are read
    from the freshly loaded User, never from the claims.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = read_access_cookie(request)
            if not token:
                return error_response(Codes.UNAUTHORIZED, "No accessToken. Authentication failed.", 401)
            try:
                decoded = verify_access_token(token)
            except InvalidToken as exc:
                logger.debug("Access token rejected: %s", exc)
                return error_response(Codes.UNAUTHORIZED, "Invalid `accessToken`.", 401)

            user_id = decoded.get("id")
            if not isinstance(user_id, str) or not user_id:
                return error_response(
                    Codes.UNAUTHORIZED, "Authentication failed: data missing from decoded cookie.", 401
                )

            user = storage.get(User, user_id)
            if user is None or not user.is_active:
                return error_response(Codes.UNAUTHORIZED, "Authentication failed: unable to find user.", 401)

            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def role_required(role):
    """
    Allow access only when the current user's stored role equals `role`.
    403 (not 401): the caller is authenticated, a refresh would not help.
    """
    required = role.value if hasattr(role, "value") else str(role)

    def decorator(fn):
        @wraps(fn)
        @access_required()
        def wrapper(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return error_response(Codes.FORBIDDEN, "Forbidden: Unable to determine user role.", 403)
            if user.role_name != required:
                return error_response(
                    Codes.FORBIDDEN, "Forbidden: The user lacks the requisite permission for this request.", 403
                )
            return fn(*args, **kwargs)

        return wrapper

    return decorator
