"""Shared data contracts for events and generated content."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

StudyType = Literal["flashcard", "quiz"]
QuestionType = Literal["mcq", "true_false", "descriptive"]


def _first_present(data: dict[str, Any], *keys: str) -> Any:
  for key in keys:
    value = data.get(key)
    if value not in (None, ""):
      return value
  return None


class Topic(BaseModel):
  """One topic of a chapter outline."""

  name: str
  description: str = ""

  @model_validator(mode="before")
  @classmethod
  def _coerce(cls, value: Any) -> Any:
    # Outlines carry topics either as bare strings or as {topic, description} objects.
    if isinstance(value, dict):
      description = value.get("description")
      return {"name": str(_first_present(value, "name", "topic", "title") or ""), "description": "" if description is None else str(description)}
    if value is None:
      return {"name": ""}
    return {"name": str(value)}


class Chapter(BaseModel):
  """Read-only chapter outline embedded in a course record.

  Only the chapter itself has to be an object; its fields are coerced so that
  loosely shaped outlines still produce notes.
  """

  model_config = ConfigDict(extra="allow")

  title: str
  summary: str = ""
  topics: list[Topic] = Field(default_factory=list)
  emoji: Any = None

  @model_validator(mode="before")
  @classmethod
  def _normalize_keys(cls, value: Any) -> Any:
    if not isinstance(value, dict):
      return value
    normalized = dict(value)
    normalized["title"] = str(_first_present(value, "title", "ChapterTitle", "chapterTitle", "chapter_title") or "")
    normalized["summary"] = str(_first_present(value, "summary", "ChapterSummary", "chapterSummary", "chapter_summary") or "")
    topics = value.get("topics")
    if isinstance(topics, (str, dict)):
      topics = [topics]
    normalized["topics"] = topics if isinstance(topics, list) else []
    return normalized


class CoursePayload(BaseModel):
  """Course record as carried by a notes.generate event."""

  model_config = ConfigDict(populate_by_name=True, extra="allow")

  course_id: str = Field(alias="courseId", min_length=1)
  created_by: str | None = Field(default=None, alias="createdBy")
  created_for: str | None = Field(default=None, alias="createdFor")
  status: str | None = None
  chapters: Any = None
  course_layout: Any = Field(default=None, alias="courseLayout")

  def raw_chapters(self) -> Any:
    """Return the chapter list wherever the record keeps it."""
    if self.chapters is not None:
      return self.chapters
    if isinstance(self.course_layout, dict):
      return self.course_layout.get("chapters")
    return None

  def owner_email(self) -> str | None:
    """Email of the learner the course was created for."""
    return self.created_for or self.created_by


class NotesGenerateData(BaseModel):
  """Payload of a notes.generate event."""

  course: CoursePayload


class StudyTypeContentData(BaseModel):
  """Payload of a studytype.content event."""

  model_config = ConfigDict(populate_by_name=True)

  study_type: StudyType = Field(alias="studyType")
  prompt: str
  course_id: str = Field(alias="courseId")
  record_id: int | str = Field(alias="recordId")

  @field_validator("study_type", mode="before")
  @classmethod
  def _lower_study_type(cls, value: Any) -> Any:
    if isinstance(value, str):
      return value.strip().lower()
    return value


class PracticeTestGenerateData(BaseModel):
  """Payload of a practice.test.generate event.

  Counts are deliberately unconstrained here: a nonsensical mix is a fatal input
  error that marks the practice test as failed rather than rejecting the event.
  """

  model_config = ConfigDict(populate_by_name=True)

  test_id: int | str = Field(alias="testId")
  prompt: str = ""
  test_type: Literal["chapter", "course"] = Field(default="course", alias="testType")
  mcq_count: int = Field(alias="mcqCount")
  true_false_count: int = Field(alias="trueFalseCount")
  descriptive_count: int = Field(alias="descriptiveCount")


class Flashcard(BaseModel):
  front: str
  back: str


class QuizQuestion(BaseModel):
  question: str
  options: list[str] = Field(min_length=2)
  answer: str

  @model_validator(mode="after")
  def _answer_is_an_option(self) -> QuizQuestion:
    if self.answer not in self.options:
      raise ValueError(f"Answer {self.answer!r} is not one of the options")
    return self


class TestQuestion(BaseModel):
  """A question of a mixed practice test; type-specific keys are kept as extras."""

  model_config = ConfigDict(extra="allow")

  id: int | None = None
  type: QuestionType
  question: str
  points: int | None = None

  @field_validator("type", mode="before")
  @classmethod
  def _normalize_type(cls, value: Any) -> Any:
    if isinstance(value, str):
      return value.strip().lower().replace("-", "_").replace("truefalse", "true_false")
    return value


class MixedTest(BaseModel):
  questions: list[TestQuestion] = Field(min_length=1)

  def count_by_type(self) -> dict[str, int]:
    counts = {"mcq": 0, "true_false": 0, "descriptive": 0}
    for question in self.questions:
      counts[question.type] += 1
    return counts


class Quiz(BaseModel):
  questions: list[QuizQuestion] = Field(min_length=1)
