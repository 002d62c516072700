from flashstudy.config import Settings
from flashstudy.db.sqlite import SQLiteStore


async def open_store(settings: Settings) -> SQLiteStore:
    store = SQLiteStore(settings.sqlite_path, timeout=settings.db_timeout_seconds)
    await store.open()
    return store
