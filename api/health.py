from flask import Blueprint
from sqlalchemy import text

from api.errors import success_response
from models import storage

bp = Blueprint("health", __name__)

VERSION = "1.0.0"


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            data:
              type: object
              properties:
                status: { type: string, example: ok }
                database: { type: string, example: ok }
                version: { type: string, example: 1.0.0 }
    """
    storage.get_session().execute(text("SELECT 1"))
    return success_response({"status": "ok", "database": "ok", "version": VERSION}, "API is up.")
