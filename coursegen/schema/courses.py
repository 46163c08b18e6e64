from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from coursegen.core.database import JSONType, Base


class User(Base):
  __tablename__ = "users"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  name: Mapped[str | None] = mapped_column(String(255), nullable=True)
  email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
  is_member: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StudyMaterial(Base):
  __tablename__ = "study_material"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  course_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
  course_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
  topic: Mapped[str | None] = mapped_column(String(500), nullable=True)
  difficulty_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
  course_layout: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
  created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
  created_for: Mapped[str | None] = mapped_column(String(255), nullable=True)
  status: Mapped[str] = mapped_column(String(50), nullable=False, default="Pending")
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class ChapterNotes(Base):
  __tablename__ = "chapter_notes"
  __table_args__ = (UniqueConstraint("course_id", "chapter_id", name="ux_chapter_notes_course_chapter"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  course_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
  chapter_id: Mapped[int] = mapped_column(Integer, nullable=False)
  notes: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PracticeTest(Base):
  __tablename__ = "practice_tests"
  # chapter_id is NULL for course-level tests, which keeps them out of this constraint.
  __table_args__ = (UniqueConstraint("course_id", "chapter_id", "user_id", "test_type", name="ux_practice_tests_chapter_user_type"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
  course_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
  chapter_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
  test_type: Mapped[str] = mapped_column(String(20), nullable=False, default="course")
  questions: Mapped[list | None] = mapped_column(JSONType, nullable=True)
  mcq_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  true_false_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  descriptive_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class StudyTypeContent(Base):
  __tablename__ = "study_type_content"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  course_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
  type: Mapped[str] = mapped_column(String(50), nullable=False)
  content: Mapped[Any] = mapped_column(JSONType, nullable=True)
  status: Mapped[str] = mapped_column(String(50), nullable=False, default="Generating")
