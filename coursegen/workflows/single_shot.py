"""Single-shot generation workflows: generate one artifact, then fill its pre-created record."""

from __future__ import annotations

import logging
from typing import Any

from coursegen.ai.contracts import PracticeTestGenerateData, StudyTypeContentData
from coursegen.ai.generator import ContentGenerator
from coursegen.jobs.errors import StepError, WorkflowFailedError, WorkflowInputError
from coursegen.jobs.models import PRACTICE_TEST_GENERATE, STUDY_TYPE_CONTENT, PracticeTestStatus, StudyContentStatus
from coursegen.jobs.steps import StepExecutor
from coursegen.storage.courses_repo import CoursesRepository
from coursegen.workflows.base import parse_event_data
from coursegen.workflows.practice_tests import QuestionMix, validate_question_mix

logger = logging.getLogger(__name__)


class StudyTypeContentWorkflow:
  """Flashcards or a quiz for a course, written to a StudyTypeContent record."""

  name = "study-type-content"

  def __init__(self, *, courses: CoursesRepository, generator: ContentGenerator) -> None:
    self._courses = courses
    self._generator = generator

  def validate(self, data: dict[str, Any]) -> StudyTypeContentData:
    return parse_event_data(StudyTypeContentData, data, event_name=STUDY_TYPE_CONTENT)

  async def run(self, run_id: str, data: dict[str, Any], steps: StepExecutor) -> dict[str, Any]:
    payload = self.validate(data)
    study_type = payload.study_type

    async def generate() -> Any:
      if study_type == "flashcard":
        return await self._generator.generate_flashcards(payload.prompt)
      return await self._generator.generate_quiz(payload.prompt)

    async def save(content: Any) -> dict[str, Any]:
      record = await self._courses.update_study_type_content(payload.record_id, content=content, status=StudyContentStatus.READY.value)
      return {"recordId": record.id, "status": record.status}

    try:
      content = await steps.run(run_id, f"generate-{study_type}", generate)
      saved = await steps.run(run_id, f"save-{study_type}", lambda: save(content))
    except StepError as exc:
      # The record keeps its Generating status.
      raise WorkflowFailedError(f"{study_type} generation failed for record {payload.record_id}", step_name=exc.step_name) from exc

    logger.info("Study content ready run_id=%s course_id=%s record_id=%s type=%s", run_id, payload.course_id, payload.record_id, study_type)
    return {"success": True, "courseId": payload.course_id, "recordId": saved["recordId"], "studyType": study_type, "status": saved["status"]}


class PracticeTestWorkflow:
  """A mixed-type practice test written to a pre-created PracticeTest record."""

  name = "practice-test"

  def __init__(self, *, courses: CoursesRepository, generator: ContentGenerator) -> None:
    self._courses = courses
    self._generator = generator

  def validate(self, data: dict[str, Any]) -> PracticeTestGenerateData:
    return parse_event_data(PracticeTestGenerateData, data, event_name=PRACTICE_TEST_GENERATE)

  async def run(self, run_id: str, data: dict[str, Any], steps: StepExecutor) -> dict[str, Any]:
    payload = self.validate(data)
    mix = QuestionMix(mcq=payload.mcq_count, true_false=payload.true_false_count, descriptive=payload.descriptive_count)
    problem = validate_question_mix(mix)
    if problem is None and not payload.prompt.strip():
      problem = "prompt must not be empty"

    if problem is not None:
      logger.error("Rejecting practice test request run_id=%s test_id=%s reason=%s", run_id, payload.test_id, problem)
      await steps.run(run_id, "update-practice-test-error", lambda: self._mark(payload.test_id, PracticeTestStatus.ERROR))
      raise WorkflowInputError(f"Invalid practice test request {payload.test_id}: {problem}")

    async def generate() -> dict[str, Any]:
      return await self._generator.generate_mixed_test(payload.prompt, mix.mcq, mix.true_false, mix.descriptive)

    try:
      test = await steps.run(run_id, "generate-practice-test", generate)
      await steps.run(run_id, "save-practice-test", lambda: self._mark(payload.test_id, PracticeTestStatus.READY, questions=list(test.get("questions") or [])))
    except StepError as exc:
      # The record keeps its pending status.
      raise WorkflowFailedError(f"Practice test generation failed for test {payload.test_id}", step_name=exc.step_name) from exc

    logger.info("Practice test ready run_id=%s test_id=%s type=%s", run_id, payload.test_id, payload.test_type)
    return {"success": True, "testId": payload.test_id, "testType": payload.test_type, "questions": len(test.get("questions") or []), **mix.as_counts()}

  async def _mark(self, test_id: int | str, status: PracticeTestStatus, questions: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    record = await self._courses.update_practice_test(test_id, status=status.value, questions=questions)
    return {"testId": record.id, "status": record.status}
