"""Provider implementations."""

from coursegen.ai.providers.base import AIModel, GenerationOptions, ModelResponse, Provider
from coursegen.ai.providers.openai import OpenAIModel, OpenAIProvider

__all__ = ["AIModel", "GenerationOptions", "ModelResponse", "Provider", "OpenAIModel", "OpenAIProvider"]
