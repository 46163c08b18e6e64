from __future__ import annotations

import httpx
import pytest

from coursegen.config import get_settings
from coursegen.jobs.models import WorkflowEvent
from coursegen.main import app

AUTH = {"X-Coursegen-Task-Secret": "test-secret"}


@pytest.fixture
async def client(dispatcher, settings):
  app.state.dispatcher = dispatcher
  app.dependency_overrides[get_settings] = lambda: settings
  transport = httpx.ASGITransport(app=app)
  async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
    yield test_client
  app.dependency_overrides.clear()
  app.state.dispatcher = None


@pytest.mark.anyio
async def test_health_needs_no_secret(client) -> None:
  response = await client.get("/health")
  assert response.status_code == 200
  assert response.json() == {"status": "ok"}
  assert response.headers["x-request-id"]


@pytest.mark.anyio
async def test_events_require_the_task_secret(client) -> None:
  response = await client.post("/internal/events", json={"name": "notes.generate", "data": {}})
  assert response.status_code == 403

  response = await client.post("/internal/events", json={"name": "notes.generate", "data": {}}, headers={"X-Coursegen-Task-Secret": "wrong"})
  assert response.status_code == 403


@pytest.mark.anyio
async def test_internal_routes_stay_closed_without_configured_secret(client, settings_factory) -> None:
  app.dependency_overrides[get_settings] = lambda: settings_factory(task_secret=None)
  response = await client.get("/internal/runs/anything", headers=AUTH)
  assert response.status_code == 403


@pytest.mark.anyio
async def test_unknown_event_type_is_a_bad_request(client) -> None:
  response = await client.post("/internal/events", json={"name": "course.archive", "data": {}}, headers=AUTH)
  assert response.status_code == 400
  assert "course.archive" in response.json()["detail"]
  assert response.json()["requestId"]


@pytest.mark.anyio
async def test_malformed_event_payload_is_a_bad_request(client, runs_repo) -> None:
  response = await client.post("/internal/events", json={"name": "studytype.content", "data": {"studyType": "mindmap"}}, headers=AUTH)
  assert response.status_code == 400
  assert runs_repo.runs == {}


@pytest.mark.anyio
async def test_missing_event_name_fails_validation(client) -> None:
  response = await client.post("/internal/events", json={"data": {}}, headers=AUTH)
  assert response.status_code == 422


@pytest.mark.anyio
async def test_accepted_event_runs_in_background_and_is_inspectable(client, dispatcher, courses_repo, course_payload) -> None:
  courses_repo.add_course("course-1")
  event = {"name": "notes.generate", "data": course_payload("course-1", 2), "id": "evt-api-1"}

  response = await client.post("/internal/events", json=event, headers={"Authorization": "Bearer test-secret"})
  assert response.status_code == 202
  assert response.json() == {"status": "accepted", "run_id": "evt-api-1"}

  await dispatcher.drain()

  response = await client.get("/internal/runs/evt-api-1", headers=AUTH)
  assert response.status_code == 200
  body = response.json()
  assert body["status"] == "done"
  assert body["workflow"] == "chapter-generation"
  assert body["result"]["chaptersProcessed"] == 2
  steps = [checkpoint["step_name"] for checkpoint in body["checkpoints"]]
  assert steps[0] == "update-course-generating"
  assert steps[-1] == "update-course-ready"
  assert "generate-chapter-1" in steps
  assert all(checkpoint["state"] == "done" for checkpoint in body["checkpoints"])
  assert courses_repo.course_statuses["course-1"] == "Ready"


@pytest.mark.anyio
async def test_unknown_run_is_not_found(client) -> None:
  response = await client.get("/internal/runs/missing", headers=AUTH)
  assert response.status_code == 404
  assert response.json()["detail"] == "Run not found."


@pytest.mark.anyio
async def test_purge_endpoint_reports_deleted_checkpoints(client, dispatcher, courses_repo, runs_repo) -> None:
  record_id = courses_repo.add_study_content(course_id="course-1", study_type="quiz")
  record = await dispatcher.dispatch(_quiz_event(record_id))
  runs_repo.runs[record.run_id].completed_at = "2020-01-01T00:00:00Z"

  response = await client.post("/internal/maintenance/purge-checkpoints", headers=AUTH)

  assert response.status_code == 200
  assert response.json() == {"deleted": 2}
  assert runs_repo.checkpoints == {}


@pytest.mark.anyio
async def test_missing_dispatcher_is_service_unavailable(client) -> None:
  app.state.dispatcher = None
  response = await client.get("/internal/runs/evt-1", headers=AUTH)
  assert response.status_code == 503


def _quiz_event(record_id: int) -> WorkflowEvent:
  return WorkflowEvent(name="studytype.content", data={"studyType": "quiz", "prompt": "Cells", "courseId": "course-1", "recordId": record_id})
