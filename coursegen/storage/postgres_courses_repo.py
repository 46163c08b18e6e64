"""SQLAlchemy-backed repository for course content records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursegen.schema.courses import ChapterNotes, PracticeTest, StudyMaterial, StudyTypeContent
from coursegen.storage.courses_repo import ChapterNotesRecord, CoursesRepository, PracticeTestRecord, StudyTypeContentRecord
from coursegen.storage.errors import CourseStatusConflictError, RecordNotFoundError
from coursegen.storage.session import resolve_session_factory, storage_session

logger = logging.getLogger(__name__)


def _int_id(value: int | str, label: str) -> int:
  try:
    return int(value)
  except (TypeError, ValueError) as exc:
    raise RecordNotFoundError(f"{label} {value!r} not found") from exc


class PostgresCoursesRepository(CoursesRepository):
  """Persist chapter notes, practice tests and study content with SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = resolve_session_factory(session_factory)

  async def get_course_status(self, course_id: str) -> str | None:
    async with storage_session(self._session_factory) as session:
      stmt = select(StudyMaterial.status).where(StudyMaterial.course_id == course_id).limit(1)
      return (await session.execute(stmt)).scalar_one_or_none()

  async def update_course_status(self, course_id: str, status: str, *, allowed_from: Iterable[str]) -> str:
    allowed = set(allowed_from)
    async with storage_session(self._session_factory) as session:
      stmt = select(StudyMaterial).where(StudyMaterial.course_id == course_id).with_for_update().limit(1)
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        raise RecordNotFoundError(f"Course {course_id} not found")
      previous = row.status
      if previous == status:
        return previous
      if previous not in allowed:
        raise CourseStatusConflictError(course_id, target=status, current=previous)
      row.status = status
      session.add(row)
      await session.commit()
      logger.info("Course status changed course_id=%s from=%s to=%s", course_id, previous, status)
      return previous

  async def insert_chapter_notes(self, *, course_id: str, chapter_id: int, notes: str) -> ChapterNotesRecord:
    async with storage_session(self._session_factory) as session:
      stmt = select(ChapterNotes).where(ChapterNotes.course_id == course_id, ChapterNotes.chapter_id == chapter_id).limit(1)
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is not None:
        logger.info("Chapter notes already stored course_id=%s chapter_id=%s", course_id, chapter_id)
        return self._notes_to_record(row)
      row = ChapterNotes(course_id=course_id, chapter_id=chapter_id, notes=notes)
      session.add(row)
      try:
        await session.commit()
      except IntegrityError:
        # Lost a race with a concurrent writer of the same chapter.
        await session.rollback()
        row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
          raise
        return self._notes_to_record(row)
      await session.refresh(row)
      return self._notes_to_record(row)

  async def insert_practice_test(self, record: PracticeTestRecord) -> PracticeTestRecord:
    async with storage_session(self._session_factory) as session:
      stmt = (
        select(PracticeTest)
        .where(
          PracticeTest.course_id == record.course_id,
          PracticeTest.chapter_id == record.chapter_id,
          PracticeTest.user_id == record.user_id,
          PracticeTest.test_type == record.test_type,
        )
        .limit(1)
      )
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is not None:
        return self._test_to_record(row)
      row = PracticeTest(
        user_id=record.user_id,
        course_id=record.course_id,
        chapter_id=record.chapter_id,
        test_type=record.test_type,
        questions=list(record.questions),
        mcq_count=record.mcq_count,
        true_false_count=record.true_false_count,
        descriptive_count=record.descriptive_count,
        status=record.status,
      )
      session.add(row)
      try:
        await session.commit()
      except IntegrityError:
        await session.rollback()
        row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
          raise
        return self._test_to_record(row)
      await session.refresh(row)
      return self._test_to_record(row)

  async def get_practice_test(self, test_id: int | str) -> PracticeTestRecord | None:
    try:
      key = int(test_id)
    except (TypeError, ValueError):
      return None
    async with storage_session(self._session_factory) as session:
      row = await session.get(PracticeTest, key)
      if row is None:
        return None
      return self._test_to_record(row)

  async def update_practice_test(self, test_id: int | str, *, status: str, questions: list[dict[str, Any]] | None = None) -> PracticeTestRecord:
    key = _int_id(test_id, "Practice test")
    async with storage_session(self._session_factory) as session:
      row = await session.get(PracticeTest, key)
      if row is None:
        raise RecordNotFoundError(f"Practice test {test_id!r} not found")
      row.status = status
      if questions is not None:
        row.questions = list(questions)
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._test_to_record(row)

  async def update_study_type_content(self, record_id: int | str, *, content: Any, status: str) -> StudyTypeContentRecord:
    key = _int_id(record_id, "Study content")
    async with storage_session(self._session_factory) as session:
      row = await session.get(StudyTypeContent, key)
      if row is None:
        raise RecordNotFoundError(f"Study content {record_id!r} not found")
      row.content = content
      row.status = status
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return StudyTypeContentRecord(id=int(row.id), course_id=str(row.course_id), type=row.type, status=str(row.status), content=row.content)

  def _notes_to_record(self, row: ChapterNotes) -> ChapterNotesRecord:
    return ChapterNotesRecord(id=int(row.id), course_id=str(row.course_id), chapter_id=int(row.chapter_id), notes=str(row.notes or ""))

  def _test_to_record(self, row: PracticeTest) -> PracticeTestRecord:
    return PracticeTestRecord(
      id=int(row.id),
      user_id=row.user_id,
      course_id=row.course_id,
      chapter_id=row.chapter_id,
      test_type=str(row.test_type),
      mcq_count=int(row.mcq_count),
      true_false_count=int(row.true_false_count),
      descriptive_count=int(row.descriptive_count),
      status=str(row.status),
      questions=list(row.questions or []),
    )
