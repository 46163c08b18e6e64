"""Lightweight .env loader for local configuration."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path


def default_env_path() -> Path:
  """Return the default .env path at the repo root."""

  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_lines(lines: Iterable[str]) -> dict[str, str]:
  """Parse key=value lines, skipping comments and blanks."""
  values: dict[str, str] = {}
  for raw_line in lines:
    line = raw_line.strip()
    if not line or line.startswith("#"):
      continue
    # Shell-style files often prefix assignments with export.
    if line.startswith("export "):
      line = line[len("export ") :].lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
      continue
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
      value = value[1:-1]
    values[key] = value
  return values


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Load a .env file into the process environment."""

  if not path.is_file():
    return

  for key, value in parse_env_lines(path.read_text(encoding="utf-8").splitlines()).items():
    if not override and key in os.environ:
      continue
    os.environ[key] = value
