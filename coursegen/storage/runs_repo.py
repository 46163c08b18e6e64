"""Storage interfaces for workflow runs and their step checkpoints."""

from __future__ import annotations

from typing import Any, Protocol

from coursegen.jobs.models import RunStatus, StepCheckpointRecord, WorkflowRunRecord


class CheckpointStore(Protocol):
  """Durable step outcomes keyed by (run_id, step_name)."""

  async def get_checkpoint(self, *, run_id: str, step_name: str) -> StepCheckpointRecord | None:
    """Get one checkpoint by logical key."""

  async def save_checkpoint(self, record: StepCheckpointRecord) -> StepCheckpointRecord:
    """Insert or update a checkpoint; a stored `done` checkpoint is returned unchanged."""

  async def list_checkpoints(self, *, run_id: str) -> list[StepCheckpointRecord]:
    """List checkpoints for one run."""


class RunsRepository(CheckpointStore, Protocol):
  """Repository contract for workflow run persistence."""

  async def create_run(self, record: WorkflowRunRecord) -> None:
    """Persist an initial run record."""

  async def get_run(self, run_id: str) -> WorkflowRunRecord | None:
    """Fetch a run by identifier."""

  async def update_run(
    self,
    run_id: str,
    *,
    status: RunStatus | None = None,
    result_json: dict[str, Any] | None = None,
    error_json: dict[str, Any] | None = None,
    attempt_count: int | None = None,
    completed_at: str | None = None,
    updated_at: str | None = None,
    logs: list[str] | None = None,
  ) -> WorkflowRunRecord | None:
    """Apply partial updates to a run."""

  async def purge_checkpoints(self, *, finished_before: str) -> int:
    """Delete checkpoints of done runs completed before the given timestamp; error runs keep theirs."""
