from contextlib import asynccontextmanager
from datetime import timezone

from fastapi import Request
from sqlalchemy import DateTime, event
from sqlalchemy.dialects import mysql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from app.errors import StoreError

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Stores timestamps as UTC and always hands back aware datetimes.

    SQLite and MySQL both drop the offset, so it is normalised on the way in and
    re-attached on the way out.
    """

    impl = DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        # plain DATETIME on MySQL truncates to whole seconds
        if dialect.name == "mysql":
            return dialect.type_descriptor(mysql.DATETIME(fsp=6))
        return dialect.type_descriptor(DateTime())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.endswith("://"):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(database_url, future=True, **kwargs)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_async_engine(database_url, future=True, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    # registers the tables on Base.metadata
    import app.models.todo  # noqa: F401
    import app.models.user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request):
    session_factory = request.app.state.context.session_factory
    async with session_factory() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession):
    """Runs the block as one atomic unit; store failures surface as StoreError."""
    try:
        async with db.begin():
            yield db
    except SQLAlchemyError as exc:
        raise StoreError(f"{type(exc).__name__}: {exc}") from exc
