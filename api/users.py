from __future__ import annotations

import logging

from flask import Blueprint, request, g, current_app
from sqlalchemy import func

from api.auth import start_session
from api.errors import Codes, error_response, success_response
from models import storage
from models.blacklisted_token import now_ms
from models.user import Role, User
from models.schemas.user import make_user_create_schema, UserOutSchema
from utils.cookies import clear_auth_cookies
from utils.decorators import access_required
from utils.security import hash_password

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()


def find_user_by_email(email: str):
    """Case-insensitive lookup."""
    if not isinstance(email, str) or not email.strip():
        return None
    session = storage.get_session()
    return session.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


@bp.post("/users")
def register():
    """
    Register a new user (also logs them in)
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            userName: { type: string }
            firstName: { type: string }
            lastName: { type: string }
            email: { type: string }
            password: { type: string }
            confirmPassword: { type: string }
    responses:
      201:
        description: Created (session in data)
      400:
        description: Form errors
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return error_response(
            Codes.FORM_ERRORS, "The form data is invalid.", 400, errors={"_schema": "Expected a JSON object."}
        )
    existing_user = find_user_by_email(payload.get("email"))
    schema = make_user_create_schema(
        existing_user=existing_user,
        password=payload.get("password"),
        min_length=current_app.config["PASSWORD_MIN_LENGTH"],
    )
    # ValidationError -> 400 FORM_ERRORS via the global handler
    data = schema.load(payload)

    user = User(
        user_name=data["user_name"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=Role.USER,
        is_active=True,
    )
    logger.info("Registering user %s", user.id)
    return start_session(user, 201, "Registration successful.", Codes.CREATED)


@bp.get("/users/current")
@access_required()
def get_current_user():
    """
    Current user record
    ---
    tags:
      - Users
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return success_response(user_out_schema.dump(g.current_user), "Request successful.")


@bp.patch("/users/soft-delete")
@access_required()
def soft_delete_user():
    """
    Deactivate the current user; the email is archived so it can be reused
    ---
    tags:
      - Users
    responses:
      200:
        description: Deactivated
      409:
        description: Already deactivated
    """
    user = g.current_user
    if not user.is_active:
        return error_response(Codes.USER_ARCHIVED, "The user was previously deleted.", 409)

    user.is_active = False
    user.email = f"__ARCHIVED_AT_{now_ms()}__{user.email}"

    storage.new(user)
    storage.save()
    logger.info("User %s deactivated", user.id)

    resp, status = success_response(
        user_out_schema.dump(user),
        f"The user {user.first_name} {user.last_name} with an 'id' of {user.id} has been deleted.",
        code=Codes.UPDATED,
    )
    clear_auth_cookies(resp)
    return resp, status
