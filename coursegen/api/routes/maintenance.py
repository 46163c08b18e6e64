from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from coursegen.api.deps import get_dispatcher, verify_task_secret
from coursegen.config import Settings, get_settings
from coursegen.jobs.dispatch import EventDispatcher
from coursegen.services.maintenance import purge_finished_checkpoints

router = APIRouter(dependencies=[Depends(verify_task_secret)])


@router.post("/maintenance/purge-checkpoints")
async def purge_checkpoints(dispatcher: Annotated[EventDispatcher, Depends(get_dispatcher)], settings: Annotated[Settings, Depends(get_settings)]) -> dict[str, int]:
  """Drop checkpoints of runs that finished outside the retention window."""
  deleted = await purge_finished_checkpoints(dispatcher.runs, retention_hours=settings.checkpoint_retention_hours)
  return {"deleted": deleted}
