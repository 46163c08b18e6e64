"""Helpers shared by the workflow definitions."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from coursegen.jobs.errors import InvalidEventPayloadError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_event_data(model: type[ModelT], data: dict[str, Any], *, event_name: str) -> ModelT:
  """Validate an event payload, mapping pydantic errors to InvalidEventPayloadError."""
  try:
    return model.model_validate(data)
  except ValidationError as exc:
    fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
    raise InvalidEventPayloadError(f"Invalid {event_name} payload: {', '.join(fields) or 'malformed'}") from exc
