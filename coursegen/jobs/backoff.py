"""Retry policy for checkpointed workflow steps."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryDecision:
  retry: bool
  delay: float


@dataclass(frozen=True)
class RetryPolicy:
  """
  Exponential backoff with a hard attempt cap.

  Attempts are counted from 1. After failed attempt n the delay is base**n seconds,
  so the production policy (3 attempts, base 2) waits 2s and then 4s before giving up.
  Every error kind is retried the same way.
  """

  max_attempts: int = 3
  base_seconds: float = 2.0

  def __post_init__(self) -> None:
    if self.max_attempts < 1:
      raise ValueError("max_attempts must be at least 1")
    if self.base_seconds < 0:
      raise ValueError("base_seconds must not be negative")

  def should_retry(self, attempt: int, error: BaseException) -> RetryDecision:
    """Decide whether failed attempt number `attempt` gets another try."""
    _ = error
    if attempt >= self.max_attempts:
      return RetryDecision(retry=False, delay=0.0)
    return RetryDecision(retry=True, delay=float(self.base_seconds**attempt))
