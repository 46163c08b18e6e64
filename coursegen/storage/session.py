"""Session scoping shared by the SQLAlchemy repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursegen.core.database import require_session_factory
from coursegen.storage.errors import StorageError


def resolve_session_factory(session_factory: async_sessionmaker[AsyncSession] | None) -> async_sessionmaker[AsyncSession]:
  if session_factory is not None:
    return session_factory
  return require_session_factory()


@asynccontextmanager
async def storage_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
  """Open a session and surface driver failures as StorageError."""
  try:
    async with session_factory() as session:
      yield session
  except SQLAlchemyError as exc:
    raise StorageError(f"{type(exc).__name__}: {exc}") from exc
