"""Generation capability used by the workflows."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from coursegen.ai.contracts import Flashcard, MixedTest, Quiz
from coursegen.ai.errors import InvalidGenerationOutputError
from coursegen.ai.json_parser import parse_json_with_fallback
from coursegen.ai.prompts import FLASHCARDS_SYSTEM_PROMPT, NOTES_SYSTEM_PROMPT, QUIZ_SYSTEM_PROMPT, mixed_test_system_prompt
from coursegen.ai.providers.base import AIModel, GenerationOptions
from coursegen.config import Settings

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
  """Contract for the external generative model; calls may be slow and may fail."""

  async def generate_notes(self, prompt: str) -> str:
    """Return HTML study notes."""

  async def generate_flashcards(self, prompt: str) -> list[dict[str, Any]]:
    """Return a list of {front, back} cards."""

  async def generate_quiz(self, prompt: str) -> dict[str, Any]:
    """Return {questions: [...]} multiple-choice questions."""

  async def generate_mixed_test(self, prompt: str, mcq_count: int, true_false_count: int, descriptive_count: int) -> dict[str, Any]:
    """Return {questions: [...]} with the requested question-type mix."""


def _parse(raw: str, label: str) -> Any:
  try:
    return parse_json_with_fallback(raw)
  except json.JSONDecodeError as exc:
    raise InvalidGenerationOutputError(f"{label} response is not valid JSON: {exc}") from exc


class ModelContentGenerator(ContentGenerator):
  """ContentGenerator backed by an AIModel, validating every structured answer."""

  def __init__(self, *, notes_model: AIModel, content_model: AIModel, notes_max_tokens: int = 16384, content_max_tokens: int = 10000) -> None:
    self._notes_model = notes_model
    self._content_model = content_model
    self._notes_options = GenerationOptions(temperature=0.7, max_tokens=notes_max_tokens)
    self._content_options = GenerationOptions(temperature=0.6, max_tokens=content_max_tokens)

  async def generate_notes(self, prompt: str) -> str:
    response = await self._notes_model.generate(prompt, system=NOTES_SYSTEM_PROMPT, options=self._notes_options)
    notes = response.content.strip()
    if not notes:
      raise InvalidGenerationOutputError("Notes response was empty.")
    return notes

  async def generate_flashcards(self, prompt: str) -> list[dict[str, Any]]:
    response = await self._content_model.generate(prompt, system=FLASHCARDS_SYSTEM_PROMPT, options=self._content_options)
    parsed = _parse(response.content, "Flashcards")
    # Some answers wrap the array in an object.
    if isinstance(parsed, dict):
      parsed = parsed.get("flashcards") or parsed.get("cards")
    if not isinstance(parsed, list) or not parsed:
      raise InvalidGenerationOutputError("Flashcards response is not a non-empty JSON array.")
    try:
      cards = [Flashcard.model_validate(item) for item in parsed]
    except ValidationError as exc:
      raise InvalidGenerationOutputError(f"Flashcards response has malformed cards: {exc.error_count()} errors") from exc
    return [card.model_dump() for card in cards]

  async def generate_quiz(self, prompt: str) -> dict[str, Any]:
    response = await self._content_model.generate(prompt, system=QUIZ_SYSTEM_PROMPT, options=self._content_options)
    parsed = _parse(response.content, "Quiz")
    if isinstance(parsed, list):
      parsed = {"questions": parsed}
    try:
      quiz = Quiz.model_validate(parsed)
    except ValidationError as exc:
      raise InvalidGenerationOutputError(f"Quiz response has malformed questions: {exc.error_count()} errors") from exc
    return quiz.model_dump()

  async def generate_mixed_test(self, prompt: str, mcq_count: int, true_false_count: int, descriptive_count: int) -> dict[str, Any]:
    system = mixed_test_system_prompt(mcq_count, true_false_count, descriptive_count)
    response = await self._content_model.generate(prompt, system=system, options=GenerationOptions(temperature=0.7, max_tokens=self._content_options.max_tokens, json_mode=True))
    parsed = _parse(response.content, "Practice test")
    if isinstance(parsed, list):
      parsed = {"questions": parsed}
    try:
      test = MixedTest.model_validate(parsed)
    except ValidationError as exc:
      raise InvalidGenerationOutputError(f"Practice test response has malformed questions: {exc.error_count()} errors") from exc
    counts = test.count_by_type()
    requested = {"mcq": mcq_count, "true_false": true_false_count, "descriptive": descriptive_count}
    if counts != requested:
      logger.warning("Practice test mix differs from request requested=%s received=%s", requested, counts)
    return test.model_dump(exclude_none=True)


def build_content_generator(settings: Settings) -> ModelContentGenerator:
  """Wire the OpenAI provider into a ContentGenerator."""
  from coursegen.ai.providers.openai import OpenAIProvider

  provider = OpenAIProvider(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
  return ModelContentGenerator(
    notes_model=provider.get_model(settings.notes_model),
    content_model=provider.get_model(settings.content_model),
    notes_max_tokens=settings.notes_max_tokens,
    content_max_tokens=settings.content_max_tokens,
  )
