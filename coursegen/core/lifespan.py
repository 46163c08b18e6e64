import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from coursegen.core.logging import initialize_logging
from coursegen.jobs.runtime import build_default_dispatcher


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the workflow dispatcher for the lifetime of the app."""
  from coursegen.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("coursegen.core.lifespan")
  initialize_logging(settings)
  logger.info("Startup complete - logging verified.")

  # Tests install their own dispatcher before the app starts.
  if getattr(app.state, "dispatcher", None) is None:
    app.state.dispatcher = build_default_dispatcher(settings)
    logger.info("Workflow dispatcher ready concurrency=%s", settings.workflow_concurrency)

  yield

  dispatcher = app.state.dispatcher
  if dispatcher.pending_tasks:
    logger.info("Waiting for %s in-flight workflow runs before shutdown.", dispatcher.pending_tasks)
    await dispatcher.drain()
