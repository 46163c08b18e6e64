"""SQLAlchemy-backed user directory lookups."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursegen.schema.courses import User
from coursegen.storage.session import resolve_session_factory, storage_session
from coursegen.storage.users_repo import UserRecord, UsersRepository


class PostgresUsersRepository(UsersRepository):
  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = resolve_session_factory(session_factory)

  async def find_user_by_email(self, email: str) -> UserRecord | None:
    normalized = email.strip().lower()
    if normalized == "":
      return None
    async with storage_session(self._session_factory) as session:
      stmt = select(User).where(func.lower(User.email) == normalized).limit(1)
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        return None
      return UserRecord(id=int(row.id), email=str(row.email), name=row.name)
