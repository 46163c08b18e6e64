"""Storage interfaces for course content records."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from coursegen.ai.contracts import StudyType


@dataclass(frozen=True)
class ChapterNotesRecord:
  """Generated notes for one chapter; chapter_id is the 1-based chapter index."""

  id: int | None
  course_id: str
  chapter_id: int
  notes: str


@dataclass(frozen=True)
class PracticeTestRecord:
  """Chapter- or course-level practice test."""

  id: int | None
  user_id: int | None
  course_id: str | None
  chapter_id: int | None
  test_type: str
  mcq_count: int
  true_false_count: int
  descriptive_count: int
  status: str
  questions: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class StudyTypeContentRecord:
  """Flashcard or quiz content pre-created by the authoring app."""

  id: int
  course_id: str
  type: StudyType
  status: str
  content: Any = None


class CoursesRepository(Protocol):
  """Repository contract for the records the generation workflows write."""

  async def get_course_status(self, course_id: str) -> str | None:
    """Return the current course status, or None when the course is unknown."""

  async def update_course_status(self, course_id: str, status: str, *, allowed_from: Iterable[str]) -> str:
    """
    Move a course to `status` when its current status is in `allowed_from`.

    Re-applying the status a course already has succeeds. Returns the previous status.
    Raises CourseStatusConflictError on any other current status and RecordNotFoundError
    for an unknown course.
    """

  async def insert_chapter_notes(self, *, course_id: str, chapter_id: int, notes: str) -> ChapterNotesRecord:
    """Insert notes for a chapter, returning the existing row when one is already stored."""

  async def insert_practice_test(self, record: PracticeTestRecord) -> PracticeTestRecord:
    """Insert a chapter practice test, returning the existing row for the same chapter, user and test type."""

  async def get_practice_test(self, test_id: int | str) -> PracticeTestRecord | None:
    """Fetch a practice test by id."""

  async def update_practice_test(self, test_id: int | str, *, status: str, questions: list[dict[str, Any]] | None = None) -> PracticeTestRecord:
    """Fill a pre-created practice test and set its status."""

  async def update_study_type_content(self, record_id: int | str, *, content: Any, status: str) -> StudyTypeContentRecord:
    """Fill a pre-created flashcard or quiz record and set its status."""
