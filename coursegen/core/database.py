from __future__ import annotations

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from coursegen.config import get_settings

# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in local runs and tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
  pass


engine: AsyncEngine | None = None
SessionLocal: async_sessionmaker[AsyncSession] | None = None


def get_db_engine() -> AsyncEngine | None:
  global engine
  settings = get_settings()
  if engine is None and settings.database_url:
    engine = create_async_engine(settings.database_url, echo=settings.debug, future=True)
  return engine


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
  global SessionLocal
  if SessionLocal is None:
    db_engine = get_db_engine()
    if db_engine:
      SessionLocal = async_sessionmaker(bind=db_engine, expire_on_commit=False, class_=AsyncSession)
  return SessionLocal


def require_session_factory() -> async_sessionmaker[AsyncSession]:
  """Return the session factory or fail when no database is configured."""
  session_factory = get_session_factory()
  if session_factory is None:
    raise RuntimeError("Database connection is not configured (COURSEGEN_DATABASE_URL is missing).")
  return session_factory


async def create_all_tables(db_engine: AsyncEngine) -> None:
  """Create every mapped table that does not exist yet."""
  # Import the table modules so their metadata is registered on Base.
  from coursegen.schema import courses, runs  # noqa: F401

  async with db_engine.begin() as connection:
    await connection.run_sync(Base.metadata.create_all)
