"""Database initialization helper.

Creates the configured PostgreSQL database when it is missing, then creates every
table the service uses. SQLite URLs skip the database step.
"""

import asyncio
import os
import re
import sys

from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import create_async_engine

# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


_DB_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def _validate_database_name(db_name: str) -> str:
  """Validate a PostgreSQL database name used as an identifier.

  `CREATE DATABASE` cannot take a bind parameter, so only plain identifiers are accepted.
  """
  if not db_name:
    raise ValueError("Target database name is empty.")
  if not _DB_NAME_PATTERN.fullmatch(db_name):
    raise ValueError("Target database name contains invalid characters (allowed: A-Z, a-z, 0-9, _).")
  return db_name


async def create_database_if_not_exists(dsn: str) -> None:
  """Create the target PostgreSQL database if it does not already exist."""
  url = make_url(dsn)
  if not url.drivername.startswith("postgresql"):
    return
  target_db = _validate_database_name(url.database or "")

  # CREATE DATABASE has to run from the maintenance database in autocommit mode.
  postgres_url = url.set(database="postgres")
  if "+asyncpg" not in postgres_url.drivername:
    postgres_url = postgres_url.set(drivername="postgresql+asyncpg")

  print(f"Connecting to postgres to check for database '{target_db}'...")
  engine = create_async_engine(postgres_url, isolation_level="AUTOCOMMIT")
  try:
    async with engine.connect() as conn:
      result = await conn.execute(text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": target_db})
      if result.scalar() == 1:
        print(f"Database '{target_db}' already exists.")
      else:
        print(f"Database '{target_db}' does not exist. Creating...")
        await conn.execute(text(f'CREATE DATABASE "{target_db}"'))
        print(f"Database '{target_db}' created successfully.")
  finally:
    await engine.dispose()


async def init_db() -> None:
  # Import after path setup so the script works when run directly.
  from coursegen.config import get_settings
  from coursegen.core.database import create_all_tables, get_db_engine

  settings = get_settings()
  if not settings.database_url:
    print("Error: COURSEGEN_DATABASE_URL is not set.")
    sys.exit(1)

  await create_database_if_not_exists(settings.database_url)
  engine = get_db_engine()
  try:
    await create_all_tables(engine)
    print("Tables created.")
  finally:
    await engine.dispose()


if __name__ == "__main__":
  if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
  asyncio.run(init_db())
