"""SQLAlchemy-backed repository for workflow runs and step checkpoints."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursegen.jobs.models import RunStatus, StepCheckpointRecord, WorkflowRunRecord
from coursegen.schema.runs import StepCheckpoint, WorkflowRun
from coursegen.storage.runs_repo import RunsRepository
from coursegen.storage.session import resolve_session_factory, storage_session


class PostgresRunsRepository(RunsRepository):
  """Persist runs and checkpoints using SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = resolve_session_factory(session_factory)

  async def create_run(self, record: WorkflowRunRecord) -> None:
    async with storage_session(self._session_factory) as session:
      run = WorkflowRun(
        run_id=record.run_id,
        workflow=record.workflow,
        event_name=record.event_name,
        payload_json=record.payload,
        status=record.status,
        result_json=record.result_json,
        error_json=record.error_json,
        logs_json=list(record.logs),
        attempt_count=record.attempt_count,
        created_at=record.created_at,
        updated_at=record.updated_at,
        completed_at=record.completed_at,
      )
      session.add(run)
      await session.commit()

  async def get_run(self, run_id: str) -> WorkflowRunRecord | None:
    async with storage_session(self._session_factory) as session:
      row = await session.get(WorkflowRun, run_id)
      if row is None:
        return None
      return self._run_to_record(row)

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
    async with storage_session(self._session_factory) as session:
      row = await session.get(WorkflowRun, run_id)
      if row is None:
        return None
      if status is not None:
        row.status = status
      if result_json is not None:
        row.result_json = result_json
      if error_json is not None:
        row.error_json = error_json
      if attempt_count is not None:
        row.attempt_count = attempt_count
      if completed_at is not None:
        row.completed_at = completed_at
      if updated_at is not None:
        row.updated_at = updated_at
      if logs is not None:
        row.logs_json = list(row.logs_json or []) + list(logs)
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._run_to_record(row)

  async def get_checkpoint(self, *, run_id: str, step_name: str) -> StepCheckpointRecord | None:
    async with storage_session(self._session_factory) as session:
      row = (await session.execute(self._checkpoint_stmt(run_id=run_id, step_name=step_name))).scalar_one_or_none()
      if row is None:
        return None
      return self._checkpoint_to_record(row)

  async def save_checkpoint(self, record: StepCheckpointRecord) -> StepCheckpointRecord:
    stmt = self._checkpoint_stmt(run_id=record.run_id, step_name=record.step_name)
    async with storage_session(self._session_factory) as session:
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is not None and row.state == "done":
        return self._checkpoint_to_record(row)
      if row is None:
        row = StepCheckpoint(run_id=record.run_id, step_name=record.step_name)
      self._apply_checkpoint(row, record)
      session.add(row)
      try:
        await session.commit()
      except IntegrityError:
        await session.rollback()
        row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
          raise
        if row.state == "done":
          return self._checkpoint_to_record(row)
        self._apply_checkpoint(row, record)
        session.add(row)
        await session.commit()
      await session.refresh(row)
      return self._checkpoint_to_record(row)

  async def list_checkpoints(self, *, run_id: str) -> list[StepCheckpointRecord]:
    async with storage_session(self._session_factory) as session:
      stmt = select(StepCheckpoint).where(StepCheckpoint.run_id == run_id).order_by(StepCheckpoint.id.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._checkpoint_to_record(row) for row in rows]

  async def purge_checkpoints(self, *, finished_before: str) -> int:
    async with storage_session(self._session_factory) as session:
      # Error runs stay resumable by redelivery, so their checkpoints are kept.
      finished = select(WorkflowRun.run_id).where(WorkflowRun.status == "done", WorkflowRun.completed_at.is_not(None), WorkflowRun.completed_at < finished_before)
      result = await session.execute(delete(StepCheckpoint).where(StepCheckpoint.run_id.in_(finished)).execution_options(synchronize_session=False))
      await session.commit()
      return int(result.rowcount or 0)

  def _checkpoint_stmt(self, *, run_id: str, step_name: str) -> Any:
    return select(StepCheckpoint).where(StepCheckpoint.run_id == run_id, StepCheckpoint.step_name == step_name).limit(1)

  def _apply_checkpoint(self, row: StepCheckpoint, record: StepCheckpointRecord) -> None:
    row.state = record.state
    row.result_json = record.result_json
    row.attempt_count = int(record.attempt_count)
    row.last_error = record.last_error

  def _checkpoint_to_record(self, row: StepCheckpoint) -> StepCheckpointRecord:
    return StepCheckpointRecord(
      run_id=str(row.run_id),
      step_name=str(row.step_name),
      state=row.state,
      result_json=row.result_json,
      attempt_count=int(row.attempt_count),
      last_error=row.last_error,
    )

  def _run_to_record(self, row: WorkflowRun) -> WorkflowRunRecord:
    return WorkflowRunRecord(
      run_id=row.run_id,
      workflow=row.workflow,
      event_name=row.event_name,
      payload=dict(row.payload_json or {}),
      status=row.status,
      result_json=row.result_json,
      error_json=row.error_json,
      attempt_count=int(row.attempt_count),
      created_at=row.created_at,
      updated_at=row.updated_at,
      completed_at=row.completed_at,
      logs=list(row.logs_json or []),
    )
