"""Prompt templates for the generation steps."""

from __future__ import annotations

import json

from coursegen.ai.contracts import Chapter

NOTES_SYSTEM_PROMPT = """You are an authoritative educational content creator and technical writing specialist.
Transform structured chapter outlines into fully developed instructional material in clean, semantic HTML.
- Do not include <html>, <head>, <body>, or <title> tags. Only return structured content (<h3>, <h4>, <p>, <ul>, <li>, <code>, etc.).
- Use <h3> for the chapter, <h4> for topics, <p> for narrative, <ul>/<li> for subpoints and <code> for examples.
- Provide in-depth explanations (at least 150 words per topic).
- Never output plain text or Markdown, only valid HTML."""

FLASHCARDS_SYSTEM_PROMPT = """Generate exactly 20 flashcards in a JSON array format.

Return only this JSON structure:
[
  {"front": "question", "back": "answer"}
]

Requirements:
- Create exactly 20 flashcard objects
- Each object has "front" (question) and "back" (answer)
- Focus on key concepts, definitions, and practical applications
- Keep questions clear and answers concise but complete"""

QUIZ_SYSTEM_PROMPT = """Generate exactly 20 multiple-choice questions in JSON format.

Return only this JSON structure:
{
  "questions": [
    {
      "question": "Clear, specific question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "answer": "Correct option (must match one option exactly)"
    }
  ]
}

Requirements:
- Create exactly 20 question objects with 4 options each
- The answer must exactly match one of the options"""

_MIXED_TEST_TEMPLATE = """Generate a mixed-type practice test in JSON format with exactly:
- {mcq_count} Multiple Choice Questions
- {true_false_count} True/False Questions
- {descriptive_count} Descriptive Questions

Return only this JSON structure:
{{
  "questions": [
    {{"id": 1, "type": "mcq", "question": "...", "options": ["A", "B", "C", "D"], "correctAnswer": 0, "explanation": "...", "points": 1}},
    {{"id": 2, "type": "true_false", "question": "...", "correctAnswer": true, "explanation": "...", "points": 1}},
    {{"id": 3, "type": "descriptive", "question": "...", "sampleAnswer": "...", "gradingCriteria": ["..."], "points": 2}}
  ]
}}

Requirements:
- Start with MCQs, then True/False, then Descriptive questions
- MCQ correctAnswer is the index (0-3) of the correct option
- True/False correctAnswer is a boolean
- Descriptive questions carry a sample answer and clear grading criteria
- Points: MCQ=1, True/False=1, Descriptive=2"""


def mixed_test_system_prompt(mcq_count: int, true_false_count: int, descriptive_count: int) -> str:
  """Render the system prompt for a mixed practice test."""
  return _MIXED_TEST_TEMPLATE.format(mcq_count=mcq_count, true_false_count=true_false_count, descriptive_count=descriptive_count)


def build_chapter_notes_prompt(chapter: Chapter) -> str:
  """Prompt for one chapter's study notes; embeds the outline verbatim."""
  outline = {"title": chapter.title, "summary": chapter.summary, "topics": [{"topic": topic.name, "description": topic.description} for topic in chapter.topics]}
  return (
    "Generate comprehensive exam material and detailed content for this chapter.\n"
    "Make sure to cover all the topic points in the content.\n"
    "Provide content in clean HTML format (Do not add HTML, Head, Body, Title tags).\n"
    "Make the content educational, detailed, and well-structured.\n\n"
    f"Chapter: {json.dumps(outline, ensure_ascii=False)}"
  )


def build_chapter_test_prompt(chapter: Chapter, notes: str) -> str:
  """Prompt for a chapter practice test grounded in the generated notes."""
  return f"Create a practice test for the chapter '{chapter.title}'. Base every question strictly on the study notes below.\n\nStudy notes:\n{notes}"
