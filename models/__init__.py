"""Models package: exposes the DBStorage singleton as `models.storage`.

Tables and the scoped session are created by `storage.reload()`, which the
application factory calls once the configured DATABASE_URL is known.
"""
from models.db_storage import DBStorage

storage = DBStorage()
