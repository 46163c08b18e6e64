from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from coursegen.api.deps import get_dispatcher, verify_task_secret
from coursegen.jobs.dispatch import EventDispatcher

router = APIRouter(dependencies=[Depends(verify_task_secret)])


class CheckpointView(BaseModel):
  step_name: str
  state: str
  attempt_count: int
  last_error: str | None = None


class RunView(BaseModel):
  run_id: str
  workflow: str
  event_name: str
  status: str
  attempt_count: int
  result: dict[str, Any] | None = None
  error: dict[str, Any] | None = None
  created_at: str
  updated_at: str
  completed_at: str | None = None
  logs: list[str]
  checkpoints: list[CheckpointView]


@router.get("/runs/{run_id}", response_model=RunView)
async def get_run(run_id: str, dispatcher: Annotated[EventDispatcher, Depends(get_dispatcher)]) -> RunView:
  """Return a run with its step checkpoints."""
  record = await dispatcher.runs.get_run(run_id)
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Run not found.")
  checkpoints = await dispatcher.runs.list_checkpoints(run_id=run_id)
  return RunView(
    run_id=record.run_id,
    workflow=record.workflow,
    event_name=record.event_name,
    status=record.status,
    attempt_count=record.attempt_count,
    result=record.result_json,
    error=record.error_json,
    created_at=record.created_at,
    updated_at=record.updated_at,
    completed_at=record.completed_at,
    logs=record.logs,
    checkpoints=[CheckpointView(step_name=item.step_name, state=item.state, attempt_count=item.attempt_count, last_error=item.last_error) for item in checkpoints],
  )
