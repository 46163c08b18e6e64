"""Housekeeping for finished workflow runs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from coursegen.storage.runs_repo import RunsRepository

logger = logging.getLogger(__name__)


def retention_cutoff(retention_hours: int, *, now: datetime | None = None) -> str:
  """Timestamp before which finished runs lose their checkpoints."""
  current = now or datetime.now(UTC)
  return (current - timedelta(hours=retention_hours)).strftime("%Y-%m-%dT%H:%M:%SZ")


async def purge_finished_checkpoints(runs: RunsRepository, *, retention_hours: int, now: datetime | None = None) -> int:
  """Delete checkpoints of runs that completed successfully more than `retention_hours` ago."""
  cutoff = retention_cutoff(retention_hours, now=now)
  deleted = await runs.purge_checkpoints(finished_before=cutoff)
  logger.info("Purged step checkpoints count=%s finished_before=%s", deleted, cutoff)
  return deleted
