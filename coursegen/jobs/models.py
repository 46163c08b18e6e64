"""Domain models for workflow runs, events and step checkpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

RunStatus = Literal["queued", "running", "done", "error"]
CheckpointState = Literal["done", "error"]

NOTES_GENERATE = "notes.generate"
STUDY_TYPE_CONTENT = "studytype.content"
PRACTICE_TEST_GENERATE = "practice.test.generate"


class CourseStatus(StrEnum):
  """Coarse course lifecycle polled by the rest of the product."""

  PENDING = "Pending"
  GENERATING = "Generating"
  READY = "Ready"
  ERROR = "Error"


class PracticeTestStatus(StrEnum):
  PENDING = "pending"
  READY = "ready"
  ERROR = "error"


class StudyContentStatus(StrEnum):
  GENERATING = "Generating"
  READY = "Ready"


class StepOutcome(StrEnum):
  """What exhausting a step's retries means for the enclosing workflow."""

  FATAL = "fatal"
  RECOVERABLE = "recoverable"


@dataclass(frozen=True)
class WorkflowEvent:
  """An inbound typed event; `id` doubles as the run id when present."""

  name: str
  data: dict[str, Any]
  id: str | None = None


@dataclass
class WorkflowRunRecord:
  """One execution instance of a workflow definition."""

  run_id: str
  workflow: str
  event_name: str
  payload: dict[str, Any]
  status: RunStatus
  created_at: str
  updated_at: str
  result_json: dict[str, Any] | None = None
  error_json: dict[str, Any] | None = None
  completed_at: str | None = None
  attempt_count: int = 0
  logs: list[str] = field(default_factory=list)

  @property
  def is_terminal(self) -> bool:
    return self.status in ("done", "error")


@dataclass(frozen=True)
class StepCheckpointRecord:
  """Durable outcome of one step of one run."""

  run_id: str
  step_name: str
  state: CheckpointState
  result_json: Any = None
  attempt_count: int = 0
  last_error: str | None = None
