"""LLM-backed quiz and flashcard generation.

The pipeline is: prompt -> completion -> JSON extraction -> mapping into the
ordinary creation payload -> the ordinary creation path. Every failure after
the prompt is built surfaces as a single GenerationError, and nothing is
persisted unless the payload validated in full.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .content import create_flashcard, create_quiz, validate_payload
from .errors import GenerationError, MappingError, QuizmasterError
from .llm_client import OpenRouterClient
from .models import Flashcard, Quiz
from .schemas import (
	CreateFlashcardRequest,
	CreateQuizRequest,
	GenerateFlashcardRequest,
	GenerateQuizRequest,
	QuestionType,
)

logger = logging.getLogger(__name__)

GENERATED_QUIZ_TIME_LIMIT = 30  # minutes

QUIZ_SYSTEM_PROMPT = (
	"You are a quiz creation assistant. You create educational quizzes with accurate information. "
	"Always respond with valid JSON."
)

FLASHCARD_SYSTEM_PROMPT = (
	"You are a flashcard creation assistant. You create educational flashcards with accurate information. "
	"Always respond with valid JSON."
)


def build_quiz_prompt(req: GenerateQuizRequest) -> str:
	return (
		f"Create a quiz about '{req.topic}' with {req.number_of_questions} questions "
		f"at {req.difficulty} difficulty level.\n"
		"Each question type must be one of SINGLE_CHOICE, MULTIPLE_CHOICE or TRUE_FALSE. "
		"Give every question at least two options and mark the correct ones with isCorrect.\n"
		"Format the response as JSON with the following structure:\n"
		'{ "title": "Quiz Title", "description": "Quiz Description", '
		'"questions": [ { "text": "Question text", "type": "MULTIPLE_CHOICE", '
		'"options": [ { "text": "Option 1", "isCorrect": true }, { "text": "Option 2", "isCorrect": false } ] } ] }\n'
		"Return ONLY the JSON, no commentary."
	)


def build_flashcard_prompt(req: GenerateFlashcardRequest) -> str:
	return (
		f"Create a set of flashcards about '{req.topic}' with {req.number_of_cards} cards.\n"
		"Format the response as JSON with the following structure:\n"
		'{ "title": "Flashcard Title", "description": "Flashcard Description", '
		'"cards": [ { "front": "Front text", "back": "Back text", "position": 0 } ] }\n'
		"Return ONLY the JSON, no commentary."
	)


def _fenced_interior(text: str, opener: str) -> Optional[str]:
	start = text.find(opener)
	if start == -1:
		return None
	start += len(opener)
	end = text.find("```", start)
	if end == -1:
		return None
	return text[start:end].strip()


def _brace_span(text: str) -> Optional[str]:
	first = text.find("{")
	last = text.rfind("}")
	if first == -1 or last <= first:
		return None
	return text[first : last + 1]


def extract_json(text: str) -> Any:
	"""Recover a JSON document from free-form completion text.

	Tried in order, first success wins: the whole text, a ```json fenced
	block, any ``` fenced block, then the span from the first "{" to the
	last "}".
	"""
	candidates = [
		text,
		_fenced_interior(text, "```json"),
		_fenced_interior(text, "```"),
		_brace_span(text),
	]
	for candidate in candidates:
		if candidate is None:
			continue
		try:
			return json.loads(candidate)
		except ValueError:
			continue
	logger.warning("no JSON found in completion (%d chars)", len(text))
	raise GenerationError("could not extract valid JSON")


# ---- mapping ----

def parse_question_type(value: Any) -> QuestionType:
	try:
		return QuestionType(str(value).strip())
	except ValueError:
		raise MappingError(f"Unknown question type: {value!r}") from None


def _as_bool(value: Any) -> bool:
	if isinstance(value, str):
		return value.strip().lower() == "true"
	return bool(value)


def _require_object(data: Any, what: str) -> Dict[str, Any]:
	if not isinstance(data, dict):
		raise MappingError(f"{what} must be a JSON object")
	return data


def _require_list(data: Dict[str, Any], key: str) -> List[Any]:
	value = data.get(key)
	if not isinstance(value, list):
		raise MappingError(f"'{key}' must be a list")
	return value


def _require_text(data: Dict[str, Any], key: str) -> str:
	value = data.get(key)
	if value is None:
		raise MappingError(f"'{key}' is required")
	return str(value)


def _tags_for(topic: str, tags: Optional[List[str]]) -> List[str]:
	return list(tags) if tags else [topic]


def map_quiz(data: Any, req: GenerateQuizRequest) -> CreateQuizRequest:
	root = _require_object(data, "quiz")
	questions = []
	for i, raw_q in enumerate(_require_list(root, "questions")):
		q = _require_object(raw_q, f"question {i + 1}")
		options = [
			{
				"text": _require_text(_require_object(raw_o, f"option of question {i + 1}"), "text"),
				"is_correct": _as_bool(raw_o.get("isCorrect")),
			}
			for raw_o in _require_list(q, "options")
		]
		questions.append(
			{
				"text": _require_text(q, "text"),
				"type": parse_question_type(q.get("type")),
				"options": options,
				"explanation": q.get("explanation"),
			}
		)
	return validate_payload(
		CreateQuizRequest,
		{
			"title": _require_text(root, "title"),
			"description": str(root.get("description") or ""),
			"tags": _tags_for(req.topic, req.tags),
			"is_public": True,
			"time_limit": GENERATED_QUIZ_TIME_LIMIT,
			"questions": questions,
		}
	)


def map_flashcard(data: Any, req: GenerateFlashcardRequest) -> CreateFlashcardRequest:
	root = _require_object(data, "flashcard set")
	cards = []
	for i, raw_c in enumerate(_require_list(root, "cards")):
		c = _require_object(raw_c, f"card {i + 1}")
		try:
			position = int(c.get("position", i))
		except (TypeError, ValueError):
			raise MappingError(f"card {i + 1} has a non-integer position") from None
		cards.append(
			{
				"front": _require_text(c, "front"),
				"back": _require_text(c, "back"),
				"position": position,
			}
		)
	return validate_payload(
		CreateFlashcardRequest,
		{
			"title": _require_text(root, "title"),
			"description": str(root.get("description") or ""),
			"tags": _tags_for(req.topic, req.tags),
			"is_public": True,
			"cards": cards,
		}
	)


def _describe(err: Exception) -> str:
	if isinstance(err, QuizmasterError):
		return err.message
	return str(err)


# ---- pipeline ----

async def generate_quiz(
	db: Session, client: OpenRouterClient, req: GenerateQuizRequest, caller_id: str
) -> Quiz:
	messages = [
		{"role": "system", "content": QUIZ_SYSTEM_PROMPT},
		{"role": "user", "content": build_quiz_prompt(req)},
	]
	try:
		raw = await client.complete(messages, req.model)
		payload = map_quiz(extract_json(raw), req)
		quiz = create_quiz(db, payload, caller_id)
	except Exception as err:
		db.rollback()
		logger.warning("quiz generation on %r failed: %s", req.topic, err)
		raise GenerationError(f"Failed to generate quiz: {_describe(err)}") from err
	logger.info("generated quiz %s on %r for %s", quiz.id, req.topic, caller_id)
	return quiz


async def generate_flashcard(
	db: Session, client: OpenRouterClient, req: GenerateFlashcardRequest, caller_id: str
) -> Flashcard:
	messages = [
		{"role": "system", "content": FLASHCARD_SYSTEM_PROMPT},
		{"role": "user", "content": build_flashcard_prompt(req)},
	]
	try:
		raw = await client.complete(messages, req.model)
		payload = map_flashcard(extract_json(raw), req)
		deck = create_flashcard(db, payload, caller_id)
	except Exception as err:
		db.rollback()
		logger.warning("flashcard generation on %r failed: %s", req.topic, err)
		raise GenerationError(f"Failed to generate flashcard: {_describe(err)}") from err
	logger.info("generated flashcard %s on %r for %s", deck.id, req.topic, caller_id)
	return deck
