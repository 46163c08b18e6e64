from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from coursegen import __version__
from coursegen.api.routes import events, maintenance, runs
from coursegen.core.exceptions import dispatch_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from coursegen.core.lifespan import lifespan
from coursegen.core.middleware import RequestLoggingMiddleware
from coursegen.jobs.errors import DispatchError

app = FastAPI(title="coursegen", version=__version__, lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(DispatchError, dispatch_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok"}


app.include_router(events.router, prefix="/internal", tags=["events"])
app.include_router(runs.router, prefix="/internal", tags=["runs"])
app.include_router(maintenance.router, prefix="/internal", tags=["maintenance"])
