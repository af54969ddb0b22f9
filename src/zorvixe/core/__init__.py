"""
Core module - Configuration, database, cache, storage, and utilities.
"""

from zorvixe.core.config import get_settings, settings
from zorvixe.core.database import Base, close_db, get_db, init_db
from zorvixe.core.redis import close_redis, get_redis_client, init_redis

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis_client",
    "init_redis",
    "close_redis",
]
