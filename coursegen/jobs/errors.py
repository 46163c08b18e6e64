"""Errors raised by the step executor, workflows and the dispatcher."""

from __future__ import annotations


class StepError(Exception):
  """A step exhausted its attempts."""

  def __init__(self, *, run_id: str, step_name: str, attempts: int, cause: BaseException | None = None, message: str | None = None) -> None:
    self.run_id = run_id
    self.step_name = step_name
    self.attempts = attempts
    self.cause = cause
    detail = message or (f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error")
    super().__init__(f"Step {step_name} of run {run_id} failed after {attempts} attempt(s): {detail}")


class WorkflowInputError(Exception):
  """Malformed workflow input; never retried."""


class WorkflowFailedError(Exception):
  """A workflow run ended on a fatal step failure."""

  def __init__(self, message: str, *, step_name: str | None = None) -> None:
    self.step_name = step_name
    super().__init__(message)


class DispatchError(Exception):
  """An event could not be routed to a workflow."""


class UnknownEventTypeError(DispatchError):
  """No workflow is registered for the event type."""

  def __init__(self, event_name: str) -> None:
    self.event_name = event_name
    super().__init__(f"Unknown event type: {event_name}")


class InvalidEventPayloadError(DispatchError):
  """The event payload does not match its workflow's contract."""
