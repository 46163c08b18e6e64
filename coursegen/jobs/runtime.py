"""Wiring of workflows, repositories and the dispatcher."""

from __future__ import annotations

import asyncio

from coursegen.ai.generator import ContentGenerator, build_content_generator
from coursegen.config import Settings
from coursegen.jobs.backoff import RetryPolicy
from coursegen.jobs.dispatch import EventDispatcher, WorkflowRegistry
from coursegen.jobs.models import NOTES_GENERATE, PRACTICE_TEST_GENERATE, STUDY_TYPE_CONTENT
from coursegen.jobs.steps import SleepFn, StepExecutor
from coursegen.storage.courses_repo import CoursesRepository
from coursegen.storage.runs_repo import RunsRepository
from coursegen.storage.users_repo import UsersRepository
from coursegen.workflows.chapter_notes import ChapterGenerationWorkflow
from coursegen.workflows.single_shot import PracticeTestWorkflow, StudyTypeContentWorkflow


def build_registry(*, courses: CoursesRepository, users: UsersRepository, generator: ContentGenerator) -> WorkflowRegistry:
  """Bind each inbound event type to its workflow."""
  return WorkflowRegistry(
    {
      NOTES_GENERATE: ChapterGenerationWorkflow(courses=courses, users=users, generator=generator),
      STUDY_TYPE_CONTENT: StudyTypeContentWorkflow(courses=courses, generator=generator),
      PRACTICE_TEST_GENERATE: PracticeTestWorkflow(courses=courses, generator=generator),
    }
  )


def build_dispatcher(
  settings: Settings,
  *,
  courses: CoursesRepository,
  users: UsersRepository,
  runs: RunsRepository,
  generator: ContentGenerator,
  sleep: SleepFn = asyncio.sleep,
) -> EventDispatcher:
  policy = RetryPolicy(max_attempts=settings.step_max_attempts, base_seconds=settings.step_backoff_base_seconds)
  executor = StepExecutor(runs, policy, sleep=sleep)
  registry = build_registry(courses=courses, users=users, generator=generator)
  return EventDispatcher(registry=registry, runs=runs, executor=executor, concurrency=settings.workflow_concurrency)


def build_default_dispatcher(settings: Settings) -> EventDispatcher:
  """Dispatcher backed by the configured database and the OpenAI provider."""
  from coursegen.storage.postgres_courses_repo import PostgresCoursesRepository
  from coursegen.storage.postgres_runs_repo import PostgresRunsRepository
  from coursegen.storage.postgres_users_repo import PostgresUsersRepository

  return build_dispatcher(
    settings,
    courses=PostgresCoursesRepository(),
    users=PostgresUsersRepository(),
    runs=PostgresRunsRepository(),
    generator=build_content_generator(settings),
  )
