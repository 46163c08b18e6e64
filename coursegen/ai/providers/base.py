"""Base interfaces for AI providers and models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ModelResponse:
  """Text returned by a model call plus token usage when the provider reports it."""

  content: str
  usage: dict[str, int] | None = None


@dataclass(frozen=True)
class GenerationOptions:
  """Sampling options forwarded to the provider."""

  temperature: float = 0.7
  max_tokens: int | None = None
  json_mode: bool = False


class AIModel(ABC):
  """Abstract base class for AI models."""

  name: str

  @abstractmethod
  async def generate(self, prompt: str, *, system: str | None = None, options: GenerationOptions | None = None) -> ModelResponse:
    """Generate a response for the given prompt."""


class Provider(ABC):
  """Abstract base class for AI providers."""

  name: str

  @abstractmethod
  def get_model(self, model: str | None = None) -> AIModel:
    """Return the model client for the provider."""
