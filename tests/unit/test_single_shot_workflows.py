"""Flashcard, quiz and practice-test workflows."""

from __future__ import annotations

import pytest

from coursegen.jobs.errors import InvalidEventPayloadError
from coursegen.jobs.models import WorkflowEvent


def _study_event(record_id: int, study_type: str, *, event_id: str | None = None) -> WorkflowEvent:
  data = {"studyType": study_type, "prompt": "Photosynthesis basics", "courseId": "course-1", "recordId": record_id}
  return WorkflowEvent(name="studytype.content", data=data, id=event_id)


def _practice_event(test_id: int, *, mcq: int = 4, true_false: int = 3, descriptive: int = 3, prompt: str = "Cell biology", event_id: str | None = None) -> WorkflowEvent:
  data = {"testId": test_id, "prompt": prompt, "mcqCount": mcq, "trueFalseCount": true_false, "descriptiveCount": descriptive}
  return WorkflowEvent(name="practice.test.generate", data=data, id=event_id)


@pytest.mark.anyio
@pytest.mark.parametrize(("study_type", "method"), [("flashcard", "generate_flashcards"), ("quiz", "generate_quiz")])
async def test_study_content_is_written_and_marked_ready(dispatcher, courses_repo, generator, study_type, method) -> None:
  record_id = courses_repo.add_study_content(course_id="course-1", study_type=study_type)

  record = await dispatcher.dispatch(_study_event(record_id, study_type))

  assert record.status == "done"
  assert record.result_json == {"success": True, "courseId": "course-1", "recordId": record_id, "studyType": study_type, "status": "Ready"}
  stored = courses_repo.study_content[record_id]
  assert stored.status == "Ready"
  assert stored.content
  assert generator.count(method) == 1
  assert generator.calls == [(method, "Photosynthesis basics")]


@pytest.mark.anyio
async def test_study_type_is_case_insensitive(dispatcher, courses_repo, generator) -> None:
  record_id = courses_repo.add_study_content(course_id="course-1", study_type="quiz")
  record = await dispatcher.dispatch(_study_event(record_id, "Quiz"))
  assert record.status == "done"
  assert generator.count("generate_quiz") == 1


def test_unknown_study_type_is_rejected_at_admission(dispatcher, courses_repo, runs_repo) -> None:
  record_id = courses_repo.add_study_content(course_id="course-1", study_type="mindmap")
  with pytest.raises(InvalidEventPayloadError):
    dispatcher.admit(_study_event(record_id, "mindmap"))
  assert runs_repo.runs == {}


@pytest.mark.anyio
async def test_study_generation_exhaustion_leaves_record_generating(dispatcher, courses_repo, generator, sleeper) -> None:
  record_id = courses_repo.add_study_content(course_id="course-1", study_type="flashcard")
  generator.failures.fail_always("generate_flashcards")

  record = await dispatcher.dispatch(_study_event(record_id, "flashcard"))

  assert record.status == "error"
  assert record.error_json["type"] == "WorkflowFailedError"
  assert record.error_json["step"] == "generate-flashcard"
  assert generator.count("generate_flashcards") == 3
  assert sleeper.delays == [2.0, 4.0]
  assert courses_repo.study_content[record_id].status == "Generating"
  assert courses_repo.study_content[record_id].content is None


@pytest.mark.anyio
async def test_redelivered_study_event_reuses_generated_content(dispatcher, courses_repo, generator) -> None:
  record_id = courses_repo.add_study_content(course_id="course-1", study_type="quiz")
  courses_repo.failures.fail("update_study_type_content", times=3)

  first = await dispatcher.dispatch(_study_event(record_id, "quiz", event_id="evt-quiz"))
  assert first.status == "error"
  assert first.error_json["step"] == "save-quiz"

  second = await dispatcher.dispatch(_study_event(record_id, "quiz", event_id="evt-quiz"))
  assert second.status == "done"
  assert generator.count("generate_quiz") == 1
  assert courses_repo.study_content[record_id].status == "Ready"


@pytest.mark.anyio
async def test_practice_test_is_filled_and_marked_ready(dispatcher, courses_repo, generator) -> None:
  test_id = courses_repo.add_practice_test(mcq=5, true_false=2, descriptive=1)

  record = await dispatcher.dispatch(_practice_event(test_id, mcq=5, true_false=2, descriptive=1))

  assert record.status == "done"
  assert record.result_json == {
    "success": True,
    "testId": test_id,
    "testType": "course",
    "questions": 8,
    "mcqCount": 5,
    "trueFalseCount": 2,
    "descriptiveCount": 1,
  }
  stored = courses_repo.practice_tests[test_id]
  assert stored.status == "ready"
  assert [question["type"] for question in stored.questions] == ["mcq"] * 5 + ["true_false"] * 2 + ["descriptive"]
  assert generator.count("generate_mixed_test") == 1


@pytest.mark.anyio
@pytest.mark.parametrize(
  ("counts", "prompt"),
  [
    ({"mcq": -1, "true_false": 3, "descriptive": 3}, "Cell biology"),
    ({"mcq": 0, "true_false": 0, "descriptive": 0}, "Cell biology"),
    ({"mcq": 4, "true_false": 3, "descriptive": 3}, "   "),
  ],
)
async def test_invalid_practice_test_request_marks_error_without_generation(dispatcher, courses_repo, generator, counts, prompt) -> None:
  test_id = courses_repo.add_practice_test()

  record = await dispatcher.dispatch(_practice_event(test_id, mcq=counts["mcq"], true_false=counts["true_false"], descriptive=counts["descriptive"], prompt=prompt))

  assert record.status == "error"
  assert record.error_json["type"] == "WorkflowInputError"
  assert courses_repo.practice_tests[test_id].status == "error"
  assert generator.calls == []


@pytest.mark.anyio
async def test_practice_test_generation_exhaustion_keeps_pending_status(dispatcher, courses_repo, generator) -> None:
  test_id = courses_repo.add_practice_test()
  generator.failures.fail_always("generate_mixed_test")

  record = await dispatcher.dispatch(_practice_event(test_id))

  assert record.status == "error"
  assert record.error_json["type"] == "WorkflowFailedError"
  assert record.error_json["step"] == "generate-practice-test"
  assert generator.count("generate_mixed_test") == 3
  assert courses_repo.practice_tests[test_id].status == "pending"
  assert courses_repo.practice_tests[test_id].questions == []


def test_practice_test_without_counts_is_rejected_at_admission(dispatcher) -> None:
  with pytest.raises(InvalidEventPayloadError):
    dispatcher.admit(WorkflowEvent(name="practice.test.generate", data={"testId": 1, "prompt": "Cell biology"}))
