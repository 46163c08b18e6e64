from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from coursegen.api.deps import get_dispatcher, verify_task_secret
from coursegen.jobs.dispatch import EventDispatcher
from coursegen.jobs.models import WorkflowEvent

router = APIRouter(dependencies=[Depends(verify_task_secret)])
logger = logging.getLogger(__name__)


class EventPayload(BaseModel):
  name: str = Field(min_length=1)
  data: dict[str, Any] = Field(default_factory=dict)
  id: str | None = None


class EventAccepted(BaseModel):
  status: str
  run_id: str


@router.post("/events", status_code=status.HTTP_202_ACCEPTED, response_model=EventAccepted)
async def submit_event(payload: EventPayload, dispatcher: Annotated[EventDispatcher, Depends(get_dispatcher)]) -> EventAccepted:
  """
  Accept a workflow event and run it in the background.

  Unknown event types and malformed payloads fail fast with 400; redelivering an
  event with the same id resumes the same run.
  """
  run_id = dispatcher.submit(WorkflowEvent(name=payload.name, data=payload.data, id=payload.id))
  logger.info("Accepted event name=%s run_id=%s", payload.name, run_id)
  return EventAccepted(status="accepted", run_id=run_id)
