"""OpenAI provider implementation using the openai SDK."""

from __future__ import annotations

import logging
from typing import Final

import openai
from openai import AsyncOpenAI

from coursegen.ai.errors import GenerationError, InvalidKeyError, ModelUnavailableError, QuotaExceededError, RateLimitedError
from coursegen.ai.providers.base import AIModel, GenerationOptions, ModelResponse, Provider

logger = logging.getLogger(__name__)

_QUOTA_CODES: Final[set[str]] = {"insufficient_quota", "billing_hard_limit_reached"}


def translate_openai_error(exc: openai.OpenAIError) -> GenerationError:
  """Map an SDK exception onto the generation error taxonomy."""
  if isinstance(exc, openai.RateLimitError):
    if getattr(exc, "code", None) in _QUOTA_CODES:
      return QuotaExceededError(str(exc))
    return RateLimitedError(str(exc))
  if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
    return InvalidKeyError(str(exc))
  if isinstance(exc, (openai.APIConnectionError, openai.InternalServerError, openai.NotFoundError)):
    return ModelUnavailableError(str(exc))
  return GenerationError(str(exc))


class OpenAIModel(AIModel):
  """Chat-completions model client."""

  def __init__(self, name: str, client: AsyncOpenAI) -> None:
    self.name: str = name
    self._client = client

  async def generate(self, prompt: str, *, system: str | None = None, options: GenerationOptions | None = None) -> ModelResponse:
    """Generate a completion, translating SDK failures into generation errors."""
    options = options or GenerationOptions()
    messages = []
    if system:
      messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    kwargs = {"model": self.name, "messages": messages, "temperature": options.temperature}
    if options.max_tokens is not None:
      kwargs["max_tokens"] = options.max_tokens
    if options.json_mode:
      kwargs["response_format"] = {"type": "json_object"}

    try:
      response = await self._client.chat.completions.create(**kwargs)
    except openai.OpenAIError as exc:
      raise translate_openai_error(exc) from exc

    content = response.choices[0].message.content or ""
    logger.debug("OpenAI response model=%s chars=%d", self.name, len(content))
    usage = None
    if response.usage:
      usage = {"prompt_tokens": response.usage.prompt_tokens, "completion_tokens": response.usage.completion_tokens, "total_tokens": response.usage.total_tokens}

    return ModelResponse(content=content, usage=usage)


class OpenAIProvider(Provider):
  """OpenAI (or any OpenAI-compatible endpoint) provider."""

  _DEFAULT_MODEL: Final[str] = "gpt-4o"

  def __init__(self, api_key: str | None = None, base_url: str | None = None, timeout: float = 300.0) -> None:
    self.name: str = "openai"
    if not api_key:
      raise ValueError("An OpenAI API key is required (COURSEGEN_OPENAI_API_KEY or OPENAI_API_KEY).")
    # Retries are owned by the step executor, so the SDK must not retry on its own.
    self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

  def get_model(self, model: str | None = None) -> AIModel:
    """Return a model client sharing this provider's HTTP connection pool."""
    return OpenAIModel(model or self._DEFAULT_MODEL, self._client)
