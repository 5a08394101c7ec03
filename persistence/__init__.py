# persistence/__init__.py
"""
Persistence layer for the dashboard client.

Provides SQLite-backed named slots used by the session store.
"""

from persistence.db import Database, default_db_path

__all__ = [
    "Database",
    "default_db_path",
]
