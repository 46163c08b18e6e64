"""ORM table definitions."""

from .courses import ChapterNotes, PracticeTest, StudyMaterial, StudyTypeContent, User
from .runs import StepCheckpoint, WorkflowRun

__all__ = ["ChapterNotes", "PracticeTest", "StepCheckpoint", "StudyMaterial", "StudyTypeContent", "User", "WorkflowRun"]
