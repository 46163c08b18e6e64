"""Identifier utilities."""

from __future__ import annotations

import time
import uuid


def generate_run_id() -> str:
  """Return a new workflow run identifier."""
  return str(uuid.uuid4())


def utc_timestamp() -> str:
  """Return the current UTC time in the ISO format stored on run records."""
  return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
