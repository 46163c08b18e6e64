from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from coursegen.jobs.models import StepCheckpointRecord, WorkflowEvent, WorkflowRunRecord
from coursegen.services.maintenance import purge_finished_checkpoints, retention_cutoff

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def _run(run_id: str, status: str, completed_at: str | None) -> WorkflowRunRecord:
  return WorkflowRunRecord(run_id=run_id, workflow="chapter-generation", event_name="notes.generate", payload={}, status=status, created_at="2026-03-01T00:00:00Z", updated_at="2026-03-01T00:00:00Z", completed_at=completed_at)


def test_retention_cutoff_is_formatted_like_run_timestamps() -> None:
  assert retention_cutoff(24, now=NOW) == "2026-03-01T12:00:00Z"


@pytest.mark.anyio
async def test_only_checkpoints_of_old_completed_runs_are_purged(runs_repo) -> None:
  for record in (_run("old-done", "done", "2026-03-01T06:00:00Z"), _run("old-error", "error", "2026-02-27T00:00:00Z"), _run("recent", "done", "2026-03-02T06:00:00Z"), _run("active", "running", None)):
    await runs_repo.create_run(record)
    await runs_repo.save_checkpoint(StepCheckpointRecord(run_id=record.run_id, step_name="generate-chapter-0", state="done", result_json={"chapterId": 1}))

  deleted = await purge_finished_checkpoints(runs_repo, retention_hours=24, now=NOW)

  assert deleted == 1
  assert sorted(run_id for run_id, _ in runs_repo.checkpoints) == ["active", "old-error", "recent"]
  # Run records themselves are kept.
  assert len(runs_repo.runs) == 4


@pytest.mark.anyio
async def test_failed_run_still_resumes_after_purge(dispatcher, runs_repo, courses_repo, generator, course_payload) -> None:
  courses_repo.add_course("course-1")
  original = generator.generate_notes
  outage = {"active": True}

  async def notes_with_outage_on_third_chapter(prompt: str) -> str:
    if outage["active"] and "Chapter title 3" in prompt:
      raise RuntimeError("model unavailable")
    return await original(prompt)

  generator.generate_notes = notes_with_outage_on_third_chapter
  event = WorkflowEvent(name="notes.generate", data=course_payload("course-1", 4), id="evt-purge")

  first = await dispatcher.dispatch(event)
  assert first.status == "error"
  assert generator.count("generate_notes") == 2

  deleted = await purge_finished_checkpoints(runs_repo, retention_hours=1, now=datetime.now(UTC) + timedelta(hours=2))
  assert deleted == 0
  assert await runs_repo.list_checkpoints(run_id="evt-purge")

  outage["active"] = False
  second = await dispatcher.dispatch(event)

  assert second.status == "done"
  # Chapters 1 and 2 come from their checkpoints, not from the model.
  assert generator.count("generate_notes") == 4
  assert courses_repo.course_statuses["course-1"] == "Ready"
