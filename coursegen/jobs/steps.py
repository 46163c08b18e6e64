"""Checkpointed step execution for durable workflow runs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from coursegen.jobs.backoff import RetryPolicy
from coursegen.jobs.errors import StepError
from coursegen.jobs.models import StepCheckpointRecord, StepOutcome
from coursegen.storage.runs_repo import CheckpointStore

T = TypeVar("T")
logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class Step(Generic[T]):
  """
  A named unit of work inside a workflow run.

  Names must be deterministic within a run so checkpoint lookups survive resumption.
  A RECOVERABLE step that exhausts its attempts yields `fallback` instead of failing the run.
  """

  name: str
  run: Callable[[], Awaitable[T]]
  outcome: StepOutcome = StepOutcome.FATAL
  fallback: T | None = None


def _describe(exc: BaseException) -> str:
  return f"{type(exc).__name__}: {exc}"


class StepExecutor:
  """Run steps at most once to success, retrying failures according to a RetryPolicy."""

  def __init__(self, checkpoints: CheckpointStore, policy: RetryPolicy | None = None, *, sleep: SleepFn = asyncio.sleep) -> None:
    self._checkpoints = checkpoints
    self._policy = policy or RetryPolicy()
    self._sleep = sleep

  @property
  def policy(self) -> RetryPolicy:
    return self._policy

  async def run(self, run_id: str, step_name: str, fn: Callable[[], Awaitable[T]]) -> T:
    """
    Return the checkpointed result of `step_name`, invoking `fn` only when no success is stored.

    The success checkpoint is written before the result is returned. When every attempt
    fails an error checkpoint is written and StepError is raised.
    """
    existing = await self._checkpoints.get_checkpoint(run_id=run_id, step_name=step_name)
    if existing is not None and existing.state == "done":
      logger.debug("Replaying checkpoint run_id=%s step=%s", run_id, step_name)
      return existing.result_json

    attempt = 0
    while True:
      attempt += 1
      try:
        result = await fn()
      except Exception as exc:
        decision = self._policy.should_retry(attempt, exc)
        if decision.retry:
          logger.warning("Step attempt failed run_id=%s step=%s attempt=%s/%s retry_in=%.1fs error=%s", run_id, step_name, attempt, self._policy.max_attempts, decision.delay, _describe(exc))
          await self._sleep(decision.delay)
          continue

        logger.error("Step exhausted attempts run_id=%s step=%s attempts=%s error=%s", run_id, step_name, attempt, _describe(exc))
        await self._checkpoints.save_checkpoint(StepCheckpointRecord(run_id=run_id, step_name=step_name, state="error", attempt_count=attempt, last_error=_describe(exc)))
        raise StepError(run_id=run_id, step_name=step_name, attempts=attempt, cause=exc) from exc

      await self._checkpoints.save_checkpoint(StepCheckpointRecord(run_id=run_id, step_name=step_name, state="done", result_json=result, attempt_count=attempt))
      return result

  async def run_step(self, run_id: str, step: Step[T]) -> T | None:
    """Run a Step, applying its outcome policy to exhaustion."""
    if step.outcome == StepOutcome.FATAL:
      return await self.run(run_id, step.name, step.run)

    # A recoverable failure is final for the run; replay it so a resumed run skips the same work.
    existing = await self._checkpoints.get_checkpoint(run_id=run_id, step_name=step.name)
    if existing is not None and existing.state == "error":
      logger.info("Replaying absorbed failure run_id=%s step=%s error=%s", run_id, step.name, existing.last_error)
      return step.fallback

    try:
      return await self.run(run_id, step.name, step.run)
    except StepError as exc:
      logger.warning("Absorbed recoverable step failure run_id=%s step=%s attempts=%s", run_id, step.name, exc.attempts)
      return step.fallback
