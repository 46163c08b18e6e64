"""Chapter generation workflow: notes and a practice test per chapter, driving course status."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from coursegen.ai.contracts import Chapter, CoursePayload, NotesGenerateData
from coursegen.ai.generator import ContentGenerator
from coursegen.ai.prompts import build_chapter_notes_prompt, build_chapter_test_prompt
from coursegen.jobs.errors import StepError, WorkflowFailedError, WorkflowInputError
from coursegen.jobs.models import NOTES_GENERATE, CourseStatus, PracticeTestStatus, StepOutcome
from coursegen.jobs.steps import Step, StepExecutor
from coursegen.storage.courses_repo import CoursesRepository, PracticeTestRecord
from coursegen.storage.users_repo import UsersRepository
from coursegen.workflows.base import parse_event_data
from coursegen.workflows.practice_tests import CHAPTER_TEST_QUESTIONS, derive_question_mix

logger = logging.getLogger(__name__)

# Conditional transitions of the course status state machine.
_GENERATING_FROM = (CourseStatus.PENDING, CourseStatus.GENERATING)
_READY_FROM = (CourseStatus.GENERATING,)
_ERROR_FROM = (CourseStatus.PENDING, CourseStatus.GENERATING)


def coerce_chapters(raw: Any) -> list[Chapter] | None:
  """Return the validated chapter list, or None when it is missing, empty or malformed."""
  if not isinstance(raw, list) or not raw:
    return None
  chapters: list[Chapter] = []
  for index, item in enumerate(raw):
    try:
      chapter = Chapter.model_validate(item)
    except ValidationError:
      return None
    if not chapter.title:
      chapter = chapter.model_copy(update={"title": f"Chapter {index + 1}"})
    chapters.append(chapter)
  return chapters


class ChapterGenerationWorkflow:
  """Generate notes for every chapter of a course, then mark the course Ready."""

  name = "chapter-generation"

  def __init__(self, *, courses: CoursesRepository, users: UsersRepository, generator: ContentGenerator, questions_per_chapter: int = CHAPTER_TEST_QUESTIONS) -> None:
    self._courses = courses
    self._users = users
    self._generator = generator
    self._mix = derive_question_mix(questions_per_chapter)

  def validate(self, data: dict[str, Any]) -> NotesGenerateData:
    return parse_event_data(NotesGenerateData, data, event_name=NOTES_GENERATE)

  async def run(self, run_id: str, data: dict[str, Any], steps: StepExecutor) -> dict[str, Any]:
    course = self.validate(data).course
    course_id = course.course_id
    chapters = coerce_chapters(course.raw_chapters())

    if chapters is None:
      logger.error("Course has no usable chapters run_id=%s course_id=%s", run_id, course_id)
      await steps.run(run_id, "update-course-error", lambda: self._set_status(course_id, CourseStatus.ERROR, _ERROR_FROM))
      raise WorkflowInputError(f"Invalid course layout for {course_id}: chapters not found or not a non-empty list")

    logger.info("Starting chapter generation run_id=%s course_id=%s chapters=%s", run_id, course_id, len(chapters))
    await steps.run(run_id, "update-course-generating", lambda: self._set_status(course_id, CourseStatus.GENERATING, _GENERATING_FROM))

    tests_created = 0
    tests_skipped = 0
    # Chapters run strictly in order; chapter i settles before chapter i+1 starts.
    for index, chapter in enumerate(chapters):
      created = await self._process_chapter(run_id, course, index, chapter, steps, total=len(chapters))
      if created:
        tests_created += 1
      else:
        tests_skipped += 1

    await steps.run(run_id, "update-course-ready", lambda: self._set_status(course_id, CourseStatus.READY, _READY_FROM))
    logger.info("Course generation completed run_id=%s course_id=%s tests_created=%s tests_skipped=%s", run_id, course_id, tests_created, tests_skipped)
    return {
      "success": True,
      "courseId": course_id,
      "chaptersProcessed": len(chapters),
      "practiceTestsCreated": tests_created,
      "practiceTestsSkipped": tests_skipped,
      "message": "All chapters processed successfully",
    }

  async def _process_chapter(self, run_id: str, course: CoursePayload, index: int, chapter: Chapter, steps: StepExecutor, *, total: int) -> bool:
    """Run one chapter's steps; returns whether its practice test was stored."""
    course_id = course.course_id
    chapter_id = index + 1
    logger.info("Processing chapter run_id=%s course_id=%s chapter=%s/%s title=%s", run_id, course_id, chapter_id, total, chapter.title)

    async def write_notes() -> dict[str, Any]:
      notes = await self._generator.generate_notes(build_chapter_notes_prompt(chapter))
      record = await self._courses.insert_chapter_notes(course_id=course_id, chapter_id=chapter_id, notes=notes)
      return {"chapterId": record.chapter_id, "notes": record.notes}

    try:
      stored = await steps.run_step(run_id, Step(name=f"generate-chapter-{index}", run=write_notes, outcome=StepOutcome.FATAL))
    except StepError as exc:
      # Course stays Generating; a redelivered event resumes from this chapter.
      raise WorkflowFailedError(f"Notes generation failed for chapter {chapter_id} of course {course_id}", step_name=exc.step_name) from exc

    async def generate_test() -> dict[str, Any]:
      prompt = build_chapter_test_prompt(chapter, stored["notes"])
      return await self._generator.generate_mixed_test(prompt, self._mix.mcq, self._mix.true_false, self._mix.descriptive)

    test = await steps.run_step(run_id, Step(name=f"generate-chapter-{index}-test", run=generate_test, outcome=StepOutcome.RECOVERABLE))
    if test is None:
      logger.warning("Skipping practice test, generation failed run_id=%s course_id=%s chapter=%s", run_id, course_id, chapter_id)
      return False

    async def resolve_user() -> int | None:
      email = course.owner_email()
      if not email:
        return None
      user = await self._users.find_user_by_email(email)
      return user.id if user is not None else None

    user_id = await steps.run_step(run_id, Step(name=f"resolve-chapter-{index}-user", run=resolve_user, outcome=StepOutcome.RECOVERABLE))
    if user_id is None:
      logger.warning("Skipping practice test, no user for course owner run_id=%s course_id=%s chapter=%s", run_id, course_id, chapter_id)
      return False

    async def save_test() -> dict[str, Any]:
      record = PracticeTestRecord(
        id=None,
        user_id=user_id,
        course_id=course_id,
        chapter_id=chapter_id,
        test_type="chapter",
        mcq_count=self._mix.mcq,
        true_false_count=self._mix.true_false,
        descriptive_count=self._mix.descriptive,
        status=PracticeTestStatus.READY.value,
        questions=list(test.get("questions") or []),
      )
      saved = await self._courses.insert_practice_test(record)
      return {"practiceTestId": saved.id}

    saved = await steps.run_step(run_id, Step(name=f"save-chapter-{index}-test", run=save_test, outcome=StepOutcome.RECOVERABLE))
    if saved is None:
      logger.warning("Practice test not stored run_id=%s course_id=%s chapter=%s", run_id, course_id, chapter_id)
      return False
    return True

  async def _set_status(self, course_id: str, status: CourseStatus, allowed_from: tuple[CourseStatus, ...]) -> str:
    previous = await self._courses.update_course_status(course_id, status.value, allowed_from=[item.value for item in allowed_from])
    logger.info("Course status course_id=%s %s -> %s", course_id, previous, status.value)
    return str(previous)
