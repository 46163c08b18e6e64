"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from coursegen.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the course generation service."""

  environment: str
  debug: bool
  database_url: str | None
  task_secret: str | None
  openai_api_key: str | None
  openai_base_url: str | None
  notes_model: str
  content_model: str
  notes_max_tokens: int
  content_max_tokens: int
  workflow_concurrency: int
  step_max_attempts: int
  step_backoff_base_seconds: float
  checkpoint_retention_hours: int
  log_dir: str
  log_max_bytes: int
  log_backup_count: int


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _normalize_database_url(raw: str | None) -> str | None:
  """Point plain PostgreSQL DSNs at the asyncpg driver."""
  if raw and raw.startswith("postgresql://"):
    return raw.replace("postgresql://", "postgresql+asyncpg://", 1)
  return raw


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("COURSEGEN_ENV", "development").lower()
  debug = _parse_bool(os.getenv("COURSEGEN_DEBUG"))

  # Pipeline knobs; the defaults are the production retry/concurrency policy.
  workflow_concurrency = _positive_int("COURSEGEN_WORKFLOW_CONCURRENCY", "5")
  step_max_attempts = _positive_int("COURSEGEN_STEP_MAX_ATTEMPTS", "3")
  step_backoff_base_seconds = float(os.getenv("COURSEGEN_STEP_BACKOFF_BASE_SECONDS", "2"))
  if step_backoff_base_seconds < 0:
    raise ValueError("COURSEGEN_STEP_BACKOFF_BASE_SECONDS must not be negative.")
  checkpoint_retention_hours = _positive_int("COURSEGEN_CHECKPOINT_RETENTION_HOURS", "24")

  log_max_bytes = _positive_int("COURSEGEN_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("COURSEGEN_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("COURSEGEN_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    database_url=_normalize_database_url(_optional_str(os.getenv("COURSEGEN_DATABASE_URL")) or _optional_str(os.getenv("DATABASE_URL"))),
    task_secret=_optional_str(os.getenv("COURSEGEN_TASK_SECRET")),
    openai_api_key=_optional_str(os.getenv("COURSEGEN_OPENAI_API_KEY")) or _optional_str(os.getenv("OPENAI_API_KEY")),
    openai_base_url=_optional_str(os.getenv("COURSEGEN_OPENAI_BASE_URL")),
    notes_model=os.getenv("COURSEGEN_NOTES_MODEL", "gpt-4o"),
    content_model=os.getenv("COURSEGEN_CONTENT_MODEL", "gpt-4o"),
    notes_max_tokens=_positive_int("COURSEGEN_NOTES_MAX_TOKENS", "16384"),
    content_max_tokens=_positive_int("COURSEGEN_CONTENT_MAX_TOKENS", "10000"),
    workflow_concurrency=workflow_concurrency,
    step_max_attempts=step_max_attempts,
    step_backoff_base_seconds=step_backoff_base_seconds,
    checkpoint_retention_hours=checkpoint_retention_hours,
    log_dir=os.getenv("COURSEGEN_LOG_DIR", "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
  )
