"""
SmartQueue — Record Store backends
"""
from smartqueue.core.config import Settings
from smartqueue.store.base import EntityType, Record, RecordStore
from smartqueue.store.memory import InMemoryRecordStore

__all__ = ["EntityType", "Record", "RecordStore", "InMemoryRecordStore", "build_store"]


def build_store(settings: Settings) -> RecordStore:
    """Create the configured backend, wrapped in a remote mirror when REMOTE_DB_URL is set."""
    backend = settings.STORE_BACKEND.lower()
    if backend == "redis":
        from smartqueue.core.redis_client import get_redis
        from smartqueue.store.redis_store import RedisRecordStore
        store: RecordStore = RedisRecordStore(get_redis(), prefix=settings.STORE_KEY_PREFIX)
    elif backend == "sql":
        from smartqueue.db.database import make_engine
        from smartqueue.store.sql_store import SqlRecordStore
        store = SqlRecordStore(make_engine(settings.database_url))
    elif backend == "memory":
        store = InMemoryRecordStore()
    else:
        raise ValueError(f"Unknown STORE_BACKEND '{settings.STORE_BACKEND}'")

    if settings.REMOTE_DB_URL:
        from smartqueue.store.mirror import MirroredRecordStore, RemoteMirror
        mirror = RemoteMirror(
            settings.REMOTE_DB_URL, auth=settings.REMOTE_DB_AUTH, timeout=settings.HTTP_TIMEOUT_SECONDS
        )
        store = MirroredRecordStore(store, mirror)
    return store
