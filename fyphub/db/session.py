from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from fyphub.core.config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite не применяет ON DELETE CASCADE без PRAGMA foreign_keys"""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.SQLALCHEMY_DATABASE_URI, echo=settings.SQL_ECHO)
enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def create_worker_engine() -> AsyncEngine:
    """
    Движок для фоновых задач Celery.
    Каждая задача выполняется в своем event loop, поэтому соединения не переиспользуются.
    """
    worker_engine = create_async_engine(settings.SQLALCHEMY_DATABASE_URI, poolclass=NullPool)
    enable_sqlite_foreign_keys(worker_engine)
    return worker_engine


async def get_db():
    async with AsyncSessionLocal() as db:
        try:
            yield db
        finally:
            await db.close()
