"""Event routing and bounded concurrent execution of workflow runs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from coursegen.jobs.errors import StepError, UnknownEventTypeError, WorkflowFailedError, WorkflowInputError
from coursegen.jobs.models import WorkflowEvent, WorkflowRunRecord
from coursegen.jobs.steps import StepExecutor
from coursegen.storage.errors import StorageError
from coursegen.storage.runs_repo import RunsRepository
from coursegen.utils.ids import generate_run_id, utc_timestamp

logger = logging.getLogger(__name__)


class Workflow(Protocol):
  """Contract for a workflow definition bound to one event type."""

  name: str

  def validate(self, data: dict[str, Any]) -> Any:
    """Validate an event payload, raising InvalidEventPayloadError."""

  async def run(self, run_id: str, data: dict[str, Any], steps: StepExecutor) -> dict[str, Any]:
    """Execute (or resume) one run and return its terminal result."""


class WorkflowRegistry:
  """Registry mapping event names to workflow definitions."""

  def __init__(self, workflows: dict[str, Workflow]) -> None:
    self._workflows = dict(workflows)

  @property
  def event_names(self) -> list[str]:
    return sorted(self._workflows)

  def resolve(self, event_name: str) -> Workflow:
    """Resolve the workflow for an event name."""
    workflow = self._workflows.get(event_name)
    if workflow is None:
      raise UnknownEventTypeError(event_name)
    return workflow


def _error_json(exc: BaseException) -> dict[str, Any]:
  payload: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
  step_name = getattr(exc, "step_name", None)
  if step_name:
    payload["step"] = step_name
  return payload


class EventDispatcher:
  """
  Admit events under a global ceiling of concurrently executing runs.

  Routing errors are raised eagerly to the caller. Once admitted, a run waits
  as `queued` until a slot is free and then executes to `done` or `error`.
  """

  def __init__(self, *, registry: WorkflowRegistry, runs: RunsRepository, executor: StepExecutor, concurrency: int = 5) -> None:
    if concurrency < 1:
      raise ValueError("concurrency must be at least 1")
    self._registry = registry
    self._runs = runs
    self._executor = executor
    self._concurrency = concurrency
    self._slots = asyncio.Semaphore(concurrency)
    self._active = 0
    self._peak = 0
    self._tasks: set[asyncio.Task[WorkflowRunRecord]] = set()

  @property
  def runs(self) -> RunsRepository:
    return self._runs

  @property
  def concurrency(self) -> int:
    return self._concurrency

  @property
  def active_runs(self) -> int:
    return self._active

  @property
  def peak_active_runs(self) -> int:
    return self._peak

  @property
  def pending_tasks(self) -> int:
    return len(self._tasks)

  def admit(self, event: WorkflowEvent) -> tuple[Workflow, str]:
    """Route and validate an event; returns the workflow and the run id it will use."""
    workflow = self._registry.resolve(event.name)
    workflow.validate(event.data)
    run_id = str(event.id) if event.id else generate_run_id()
    return workflow, run_id

  async def dispatch(self, event: WorkflowEvent) -> WorkflowRunRecord:
    """Run an event's workflow to a terminal state and return the run record."""
    workflow, run_id = self.admit(event)
    return await self._execute(workflow, run_id, event)

  def submit(self, event: WorkflowEvent) -> str:
    """Schedule an event's workflow in the background and return its run id."""
    workflow, run_id = self.admit(event)
    task = asyncio.create_task(self._execute(workflow, run_id, event), name=f"workflow-run-{run_id}")
    self._tasks.add(task)
    task.add_done_callback(self._on_task_done)
    return run_id

  async def drain(self) -> None:
    """Wait for every background run scheduled so far."""
    while self._tasks:
      await asyncio.gather(*list(self._tasks), return_exceptions=True)

  def _on_task_done(self, task: asyncio.Task[WorkflowRunRecord]) -> None:
    self._tasks.discard(task)
    if task.cancelled():
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Background workflow run crashed task=%s", task.get_name(), exc_info=exc)

  async def _execute(self, workflow: Workflow, run_id: str, event: WorkflowEvent) -> WorkflowRunRecord:
    record = await self._load_or_create_run(workflow, run_id, event)
    if record.status == "done":
      logger.info("Run already completed, skipping run_id=%s event=%s", run_id, event.name)
      return record

    async with self._slots:
      self._active += 1
      self._peak = max(self._peak, self._active)
      try:
        return await self._run(workflow, record, event)
      finally:
        self._active -= 1

  async def _load_or_create_run(self, workflow: Workflow, run_id: str, event: WorkflowEvent) -> WorkflowRunRecord:
    existing = await self._runs.get_run(run_id)
    if existing is not None:
      if existing.status != "done":
        logger.info("Resuming run run_id=%s status=%s attempts=%s", run_id, existing.status, existing.attempt_count)
      return existing

    timestamp = utc_timestamp()
    record = WorkflowRunRecord(run_id=run_id, workflow=workflow.name, event_name=event.name, payload=dict(event.data), status="queued", created_at=timestamp, updated_at=timestamp)
    try:
      await self._runs.create_run(record)
    except StorageError:
      # A concurrent delivery of the same event may have created the run first.
      existing = await self._runs.get_run(run_id)
      if existing is None:
        raise
      return existing
    return record

  async def _run(self, workflow: Workflow, record: WorkflowRunRecord, event: WorkflowEvent) -> WorkflowRunRecord:
    run_id = record.run_id
    attempt = record.attempt_count + 1
    await self._runs.update_run(run_id, status="running", attempt_count=attempt, updated_at=utc_timestamp(), logs=[f"Run attempt {attempt} started."])
    logger.info("Workflow run started run_id=%s workflow=%s attempt=%s", run_id, workflow.name, attempt)
    try:
      result = await workflow.run(run_id, event.data, self._executor)
    except (WorkflowInputError, WorkflowFailedError, StepError) as exc:
      logger.error("Workflow run failed run_id=%s workflow=%s error=%s", run_id, workflow.name, exc)
      return await self._finish(record, status="error", error_json=_error_json(exc), message=f"Run failed: {exc}")
    except Exception as exc:  # noqa: BLE001
      logger.error("Workflow run crashed run_id=%s workflow=%s", run_id, workflow.name, exc_info=True)
      return await self._finish(record, status="error", error_json=_error_json(exc), message=f"Run crashed: {exc}")
    logger.info("Workflow run completed run_id=%s workflow=%s", run_id, workflow.name)
    return await self._finish(record, status="done", result_json=result, message="Run completed.")

  async def _finish(self, record: WorkflowRunRecord, *, status: str, message: str, result_json: dict[str, Any] | None = None, error_json: dict[str, Any] | None = None) -> WorkflowRunRecord:
    timestamp = utc_timestamp()
    updated = await self._runs.update_run(record.run_id, status=status, result_json=result_json, error_json=error_json, completed_at=timestamp, updated_at=timestamp, logs=[message])
    if updated is None:
      raise StorageError(f"Run {record.run_id} disappeared before it could be finalized")
    return updated
