from flask import Blueprint, g

from api.errors import success_response
from models.user import Role
from models.schemas.user import UserOutSchema
from utils.decorators import role_required

bp = Blueprint("admin", __name__)

user_out_schema = UserOutSchema()


@bp.get("/test")
@role_required(Role.ADMIN)
def get_admin():
    """
    Admin-only check: returns the caller's own record
    ---
    tags:
      - Admin
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      403:
        description: Not an admin
    """
    return success_response(user_out_schema.dump(g.current_user), "Request for admin data successful.")
