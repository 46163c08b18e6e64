"""Shared fixtures: in-memory repositories, a scripted generator and a recording sleep."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

import pytest

from coursegen.ai.errors import RateLimitedError
from coursegen.config import Settings
from coursegen.jobs.backoff import RetryPolicy
from coursegen.jobs.dispatch import EventDispatcher
from coursegen.jobs.models import StepCheckpointRecord, WorkflowRunRecord
from coursegen.jobs.runtime import build_dispatcher
from coursegen.jobs.steps import StepExecutor
from coursegen.storage.courses_repo import ChapterNotesRecord, PracticeTestRecord, StudyTypeContentRecord
from coursegen.storage.errors import CourseStatusConflictError, RecordNotFoundError, StorageError
from coursegen.storage.users_repo import UserRecord


@pytest.fixture
def anyio_backend():
  return "asyncio"


class FailureScript:
  """Counts down injected failures per operation name."""

  def __init__(self) -> None:
    self._remaining: dict[str, int] = {}

  def fail(self, operation: str, times: int = 1) -> None:
    self._remaining[operation] = times

  def fail_always(self, operation: str) -> None:
    self._remaining[operation] = 10**6

  def check(self, operation: str, error: Callable[[], Exception]) -> None:
    remaining = self._remaining.get(operation, 0)
    if remaining > 0:
      self._remaining[operation] = remaining - 1
      raise error()


class InMemoryRunsRepository:
  """In-memory runs and checkpoints with the same done-is-final rule as the SQL store."""

  def __init__(self) -> None:
    self.runs: dict[str, WorkflowRunRecord] = {}
    self.checkpoints: dict[tuple[str, str], StepCheckpointRecord] = {}
    self.failures = FailureScript()

  async def create_run(self, record: WorkflowRunRecord) -> None:
    if record.run_id in self.runs:
      raise StorageError(f"Run {record.run_id} already exists")
    self.runs[record.run_id] = replace(record, logs=list(record.logs))

  async def get_run(self, run_id: str) -> WorkflowRunRecord | None:
    return self.runs.get(run_id)

  async def update_run(self, run_id: str, **kwargs: Any) -> WorkflowRunRecord | None:
    record = self.runs.get(run_id)
    if record is None:
      return None
    logs = kwargs.pop("logs", None)
    updated = replace(record, **{key: value for key, value in kwargs.items() if value is not None})
    if logs:
      updated = replace(updated, logs=list(updated.logs) + list(logs))
    self.runs[run_id] = updated
    return updated

  async def get_checkpoint(self, *, run_id: str, step_name: str) -> StepCheckpointRecord | None:
    return self.checkpoints.get((run_id, step_name))

  async def save_checkpoint(self, record: StepCheckpointRecord) -> StepCheckpointRecord:
    self.failures.check("save_checkpoint", lambda: StorageError("checkpoint store unavailable"))
    key = (record.run_id, record.step_name)
    existing = self.checkpoints.get(key)
    if existing is not None and existing.state == "done":
      return existing
    # Round-trip through JSON like the real column does.
    stored = replace(record, result_json=json.loads(json.dumps(record.result_json)))
    self.checkpoints[key] = stored
    return stored

  async def list_checkpoints(self, *, run_id: str) -> list[StepCheckpointRecord]:
    return [record for (owner, _), record in self.checkpoints.items() if owner == run_id]

  async def purge_checkpoints(self, *, finished_before: str) -> int:
    finished = {run.run_id for run in self.runs.values() if run.status == "done" and run.completed_at is not None and run.completed_at < finished_before}
    doomed = [key for key in self.checkpoints if key[0] in finished]
    for key in doomed:
      del self.checkpoints[key]
    return len(doomed)


class InMemoryCoursesRepository:
  """In-memory course records with conditional status writes and idempotent inserts."""

  def __init__(self) -> None:
    self.course_statuses: dict[str, str] = {}
    self.status_history: list[tuple[str, str]] = []
    self.notes: dict[tuple[str, int], ChapterNotesRecord] = {}
    self.practice_tests: dict[int, PracticeTestRecord] = {}
    self.study_content: dict[int, StudyTypeContentRecord] = {}
    self.failures = FailureScript()
    self._next_id = 1

  def add_course(self, course_id: str, status: str = "Pending") -> None:
    self.course_statuses[course_id] = status

  def add_practice_test(self, *, mcq: int = 4, true_false: int = 3, descriptive: int = 3, status: str = "pending") -> int:
    test_id = self._allocate_id()
    self.practice_tests[test_id] = PracticeTestRecord(id=test_id, user_id=1, course_id=None, chapter_id=None, test_type="course", mcq_count=mcq, true_false_count=true_false, descriptive_count=descriptive, status=status)
    return test_id

  def add_study_content(self, *, course_id: str, study_type: str) -> int:
    record_id = self._allocate_id()
    self.study_content[record_id] = StudyTypeContentRecord(id=record_id, course_id=course_id, type=study_type, status="Generating")
    return record_id

  def chapter_tests(self, course_id: str) -> list[PracticeTestRecord]:
    return sorted((test for test in self.practice_tests.values() if test.course_id == course_id and test.test_type == "chapter"), key=lambda test: test.chapter_id or 0)

  async def get_course_status(self, course_id: str) -> str | None:
    return self.course_statuses.get(course_id)

  async def update_course_status(self, course_id: str, status: str, *, allowed_from: Iterable[str]) -> str:
    self.failures.check("update_course_status", lambda: StorageError("status write failed"))
    previous = self.course_statuses.get(course_id)
    if previous is None:
      raise RecordNotFoundError(f"Course {course_id} not found")
    if previous == status:
      return previous
    if previous not in set(allowed_from):
      raise CourseStatusConflictError(course_id, target=status, current=previous)
    self.course_statuses[course_id] = status
    self.status_history.append((course_id, status))
    return previous

  async def insert_chapter_notes(self, *, course_id: str, chapter_id: int, notes: str) -> ChapterNotesRecord:
    self.failures.check("insert_chapter_notes", lambda: StorageError("notes insert failed"))
    key = (course_id, chapter_id)
    if key not in self.notes:
      self.notes[key] = ChapterNotesRecord(id=self._allocate_id(), course_id=course_id, chapter_id=chapter_id, notes=notes)
    return self.notes[key]

  async def insert_practice_test(self, record: PracticeTestRecord) -> PracticeTestRecord:
    self.failures.check("insert_practice_test", lambda: StorageError("practice test insert failed"))
    for existing in self.practice_tests.values():
      if (existing.course_id, existing.chapter_id, existing.user_id, existing.test_type) == (record.course_id, record.chapter_id, record.user_id, record.test_type):
        return existing
    stored = replace(record, id=self._allocate_id())
    self.practice_tests[stored.id] = stored
    return stored

  async def get_practice_test(self, test_id: int | str) -> PracticeTestRecord | None:
    return self.practice_tests.get(int(test_id))

  async def update_practice_test(self, test_id: int | str, *, status: str, questions: list[dict[str, Any]] | None = None) -> PracticeTestRecord:
    self.failures.check("update_practice_test", lambda: StorageError("practice test update failed"))
    existing = self.practice_tests.get(int(test_id))
    if existing is None:
      raise RecordNotFoundError(f"Practice test {test_id!r} not found")
    updated = replace(existing, status=status, questions=list(questions) if questions is not None else existing.questions)
    self.practice_tests[existing.id] = updated
    return updated

  async def update_study_type_content(self, record_id: int | str, *, content: Any, status: str) -> StudyTypeContentRecord:
    self.failures.check("update_study_type_content", lambda: StorageError("content update failed"))
    existing = self.study_content.get(int(record_id))
    if existing is None:
      raise RecordNotFoundError(f"Study content {record_id!r} not found")
    updated = replace(existing, content=content, status=status)
    self.study_content[existing.id] = updated
    return updated

  def _allocate_id(self) -> int:
    value = self._next_id
    self._next_id += 1
    return value


class InMemoryUsersRepository:
  def __init__(self, users: Iterable[UserRecord] = ()) -> None:
    self.users = {user.email.lower(): user for user in users}
    self.failures = FailureScript()
    self.lookups: list[str] = []

  async def find_user_by_email(self, email: str) -> UserRecord | None:
    self.lookups.append(email)
    self.failures.check("find_user_by_email", lambda: StorageError("user directory unavailable"))
    return self.users.get(email.strip().lower())


class ScriptedContentGenerator:
  """Generator double that records calls, tracks overlap and fails on demand."""

  def __init__(self, *, delay: float = 0.0) -> None:
    self.calls: list[tuple[str, str]] = []
    self.failures = FailureScript()
    self.delay = delay
    self.in_flight = 0
    self.max_in_flight = 0

  def count(self, method: str) -> int:
    return sum(1 for name, _ in self.calls if name == method)

  async def _enter(self, method: str, prompt: str) -> None:
    self.calls.append((method, prompt))
    self.in_flight += 1
    self.max_in_flight = max(self.max_in_flight, self.in_flight)
    try:
      if self.delay:
        await asyncio.sleep(self.delay)
      self.failures.check(method, lambda: RateLimitedError("429 Too Many Requests"))
    finally:
      self.in_flight -= 1

  async def generate_notes(self, prompt: str) -> str:
    await self._enter("generate_notes", prompt)
    return f"<h3>Notes {self.count('generate_notes')}</h3><p>Generated content.</p>"

  async def generate_flashcards(self, prompt: str) -> list[dict[str, Any]]:
    await self._enter("generate_flashcards", prompt)
    return [{"front": f"Term {index}", "back": f"Definition {index}"} for index in range(1, 21)]

  async def generate_quiz(self, prompt: str) -> dict[str, Any]:
    await self._enter("generate_quiz", prompt)
    return {"questions": [{"question": f"Question {index}?", "options": ["A", "B", "C", "D"], "answer": "A"} for index in range(1, 21)]}

  async def generate_mixed_test(self, prompt: str, mcq_count: int, true_false_count: int, descriptive_count: int) -> dict[str, Any]:
    await self._enter("generate_mixed_test", prompt)
    questions: list[dict[str, Any]] = []
    for _ in range(mcq_count):
      questions.append({"id": len(questions) + 1, "type": "mcq", "question": "Pick one", "options": ["A", "B", "C", "D"], "correctAnswer": 0, "points": 1})
    for _ in range(true_false_count):
      questions.append({"id": len(questions) + 1, "type": "true_false", "question": "True?", "correctAnswer": True, "points": 1})
    for _ in range(descriptive_count):
      questions.append({"id": len(questions) + 1, "type": "descriptive", "question": "Explain", "sampleAnswer": "Because.", "gradingCriteria": ["clarity"], "points": 2})
    return {"questions": questions}


class RecordingSleep:
  """Sleep replacement that records requested delays instead of waiting."""

  def __init__(self) -> None:
    self.delays: list[float] = []

  async def __call__(self, delay: float) -> None:
    self.delays.append(delay)


def make_course_payload(course_id: str, chapter_count: int, *, created_for: str | None = "learner@example.com", nested: bool = True) -> dict[str, Any]:
  chapters = [{"ChapterTitle": f"Chapter title {index}", "chapterSummary": f"Summary {index}", "topics": [f"Topic {index}.1", f"Topic {index}.2"]} for index in range(1, chapter_count + 1)]
  course: dict[str, Any] = {"courseId": course_id, "createdBy": "author@example.com", "createdFor": created_for, "status": "Pending"}
  if nested:
    course["courseLayout"] = {"courseTitle": "Course", "chapters": chapters}
  else:
    course["chapters"] = chapters
  return {"course": course}


def make_settings(**overrides: Any) -> Settings:
  values: dict[str, Any] = {
    "environment": "test",
    "debug": False,
    "database_url": None,
    "task_secret": "test-secret",
    "openai_api_key": None,
    "openai_base_url": None,
    "notes_model": "gpt-4o",
    "content_model": "gpt-4o",
    "notes_max_tokens": 16384,
    "content_max_tokens": 10000,
    "workflow_concurrency": 5,
    "step_max_attempts": 3,
    "step_backoff_base_seconds": 2.0,
    "checkpoint_retention_hours": 24,
    "log_dir": "./logs",
    "log_max_bytes": 5242880,
    "log_backup_count": 10,
  }
  values.update(overrides)
  return Settings(**values)


@pytest.fixture
def settings() -> Settings:
  return make_settings()


@pytest.fixture
def runs_repo() -> InMemoryRunsRepository:
  return InMemoryRunsRepository()


@pytest.fixture
def courses_repo() -> InMemoryCoursesRepository:
  return InMemoryCoursesRepository()


@pytest.fixture
def users_repo() -> InMemoryUsersRepository:
  return InMemoryUsersRepository([UserRecord(id=7, email="learner@example.com", name="Learner")])


@pytest.fixture
def generator() -> ScriptedContentGenerator:
  return ScriptedContentGenerator()


@pytest.fixture
def sleeper() -> RecordingSleep:
  return RecordingSleep()


@pytest.fixture
def executor(runs_repo: InMemoryRunsRepository, sleeper: RecordingSleep) -> StepExecutor:
  return StepExecutor(runs_repo, RetryPolicy(max_attempts=3, base_seconds=2.0), sleep=sleeper)


@pytest.fixture
def dispatcher(settings: Settings, runs_repo, courses_repo, users_repo, generator, sleeper) -> EventDispatcher:
  return build_dispatcher(settings, courses=courses_repo, users=users_repo, runs=runs_repo, generator=generator, sleep=sleeper)


@pytest.fixture
def course_payload() -> Callable[..., dict[str, Any]]:
  return make_course_payload


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
  return make_settings


@pytest.fixture
def generator_factory() -> Callable[..., ScriptedContentGenerator]:
  return ScriptedContentGenerator
