from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from coursegen.config import Settings, get_settings
from coursegen.jobs.dispatch import EventDispatcher

logger = logging.getLogger(__name__)


def get_dispatcher(request: Request) -> EventDispatcher:
  """Return the dispatcher created at startup."""
  dispatcher = getattr(request.app.state, "dispatcher", None)
  if dispatcher is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Workflow dispatcher is not available.")
  return dispatcher


def verify_task_secret(
  request: Request,
  settings: Annotated[Settings, Depends(get_settings)],
  authorization: str | None = Header(default=None),
  x_coursegen_task_secret: str | None = Header(default=None),
) -> None:
  """Authenticate internal callers with the shared task secret."""
  # Internal endpoints stay closed when no secret is configured.
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")
  shared_secret_valid = secrets.compare_digest((x_coursegen_task_secret or ""), settings.task_secret)
  bearer_valid = secrets.compare_digest((authorization or ""), f"Bearer {settings.task_secret}")
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Unauthorized access attempt to %s", request.url.path)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")
