"""Unit tests for API error payload sanitization."""

from __future__ import annotations

from coursegen.core.exceptions import _coerce_json_safe, _error_payload, _sanitize_validation_errors


def test_sanitize_validation_errors_removes_event_payload_and_serializes_exception_ctx() -> None:
  """Validation errors stay JSON-serializable and never echo the submitted event."""
  errors = [{"type": "value_error", "loc": ("body", "data"), "msg": "Value error, bad course.", "input": {"course": {"courseId": "c-1"}}, "ctx": {"error": ValueError("bad course."), "input": {"course": {}}}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "data"]
  assert sanitized[0]["ctx"]["error"] == "ValueError: bad course."
  assert "input" not in sanitized[0]["ctx"]


def test_coerce_json_safe_names_empty_exceptions() -> None:
  assert _coerce_json_safe(KeyError()) == "KeyError"
  assert _coerce_json_safe({1: {"x"}}) == {"1": ["x"]}


def test_error_payload_attaches_request_id_only_when_known() -> None:
  assert _error_payload("nope") == {"detail": "nope"}
  assert _error_payload("nope", request_id="req-1") == {"detail": "nope", "requestId": "req-1"}
