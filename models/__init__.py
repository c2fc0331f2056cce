"""
Model package: exposes the DBStorage singleton.

The engine is bound by `storage.reload(url)`, which the Flask app factory
calls with its DATABASE_URL.
"""
from models.db_storage import DBStorage

storage = DBStorage()
