"""Errors raised by the generation capability."""

from __future__ import annotations


class GenerationError(Exception):
  """Base class for failures of the external generative model."""


class RateLimitedError(GenerationError):
  """The provider throttled the request."""


class InvalidKeyError(GenerationError):
  """The provider rejected the configured credentials."""


class QuotaExceededError(GenerationError):
  """The account has no remaining quota."""


class ModelUnavailableError(GenerationError):
  """The model could not be reached or is not serving requests."""


class InvalidGenerationOutputError(GenerationError):
  """The model answered, but the content could not be parsed into the expected shape."""
