"""Persistence errors surfaced to the workflows."""

from __future__ import annotations


class StorageError(Exception):
  """A persistence operation failed; treated as transient by the step executor."""


class CourseStatusConflictError(StorageError):
  """A conditional course status write found an unexpected current status."""

  def __init__(self, course_id: str, *, target: str, current: str | None) -> None:
    self.course_id = course_id
    self.target = target
    self.current = current
    super().__init__(f"Course {course_id} cannot move to {target} from {current}")


class RecordNotFoundError(StorageError):
  """The record a workflow expected to update does not exist."""
