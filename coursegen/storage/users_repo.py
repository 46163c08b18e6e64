"""Storage interface for the user directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class UserRecord:
  id: int
  email: str
  name: str | None = None


class UsersRepository(Protocol):
  """Read-only access to users owned by the authoring app."""

  async def find_user_by_email(self, email: str) -> UserRecord | None:
    """Return the user registered with `email`, if any."""
