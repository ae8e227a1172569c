"""Storage layer — SQLite database access and schema management."""

from fluxa.storage.connection import get_connection
from fluxa.storage.schema import init_db

__all__ = ["get_connection", "init_db"]
