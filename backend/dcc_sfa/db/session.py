from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from dcc_sfa.core.config import settings


def build_engine(database_url: str, **kwargs):
    """Async engine; SQLite connections get foreign key enforcement"""
    engine = create_async_engine(
        database_url,
        echo=settings.SQL_DEBUG,
        future=True,
        **kwargs,
    )
    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


def build_session_factory(bind) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)
