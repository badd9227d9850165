from __future__ import annotations
import json
import logging
from typing import Any, List, Type, TypeVar

import pydantic
from sqlalchemy import String, cast, delete, func
from sqlalchemy.orm import Session

from .errors import Forbidden, NotFound, ValidationError
from .models import Flashcard, FlashcardStudy, Quiz, QuizAttempt, new_id
from .schemas import (
	CreateFlashcardRequest,
	CreateQuizRequest,
	FlashcardResponse,
	QuizResponse,
)

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=pydantic.BaseModel)


def describe_errors(err: pydantic.ValidationError) -> str:
	return "; ".join(
		f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in err.errors()
	)


def validate_payload(model: Type[PayloadT], data: Any) -> PayloadT:
	"""Validate a creation payload built outside the HTTP layer."""
	try:
		return model.model_validate(data)
	except pydantic.ValidationError as err:
		raise ValidationError(describe_errors(err)) from err


# ---- quizzes ----

def create_quiz(db: Session, req: CreateQuizRequest, caller_id: str) -> Quiz:
	"""Persist an already validated quiz payload owned by ``caller_id``."""
	questions = [
		{
			"id": new_id(),
			"text": q.text,
			"image_url": q.image_url,
			"type": q.type.value,
			"options": [{"id": new_id(), "text": o.text, "is_correct": o.is_correct} for o in q.options],
			"explanation": q.explanation,
		}
		for q in req.questions
	]
	quiz = Quiz(
		title=req.title,
		description=req.description,
		tags=list(req.tags),
		created_by=caller_id,
		is_public=req.is_public,
		time_limit=req.time_limit,
		questions=questions,
	)
	db.add(quiz)
	db.commit()
	db.refresh(quiz)
	logger.info("quiz %s created by %s with %d questions", quiz.id, caller_id, len(questions))
	return quiz


def get_quiz(db: Session, quiz_id: str) -> Quiz:
	quiz = db.get(Quiz, quiz_id)
	if quiz is None:
		raise NotFound("Quiz not found")
	return quiz


def list_quizzes(db: Session) -> List[Quiz]:
	return db.query(Quiz).order_by(Quiz.created_at.desc()).all()


def list_public_quizzes(db: Session) -> List[Quiz]:
	return db.query(Quiz).filter(Quiz.is_public.is_(True)).order_by(Quiz.created_at.desc()).all()


def list_my_quizzes(db: Session, caller_id: str) -> List[Quiz]:
	return db.query(Quiz).filter(Quiz.created_by == caller_id).order_by(Quiz.created_at.desc()).all()


def tag_pattern(tag: str) -> str:
	"""LIKE pattern (escape ``!``) matching the tag as an element of a stored JSON list."""
	encoded = json.dumps(tag)
	for ch in ("!", "%", "_"):
		encoded = encoded.replace(ch, "!" + ch)
	return f"%{encoded}%"


def list_quizzes_by_tag(db: Session, tag: str) -> List[Quiz]:
	# Narrow in SQL on the JSON text, then confirm exact membership
	candidates = (
		db.query(Quiz)
		.filter(cast(Quiz.tags, String).like(tag_pattern(tag), escape="!"))
		.order_by(Quiz.created_at.desc())
		.all()
	)
	return [q for q in candidates if tag in (q.tags or [])]


def search_quizzes(db: Session, keyword: str) -> List[Quiz]:
	pattern = f"%{keyword.lower()}%"
	return db.query(Quiz).filter(func.lower(Quiz.title).like(pattern)).order_by(Quiz.created_at.desc()).all()


def recent_quizzes(db: Session, limit: int = 10) -> List[Quiz]:
	return db.query(Quiz).order_by(Quiz.created_at.desc()).limit(limit).all()


def delete_quiz(db: Session, quiz_id: str, caller_id: str) -> None:
	quiz = get_quiz(db, quiz_id)
	if quiz.created_by != caller_id:
		logger.warning("user %s tried to delete quiz %s owned by %s", caller_id, quiz_id, quiz.created_by)
		raise Forbidden("Unauthorized access to quiz")
	db.execute(delete(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id))
	db.delete(quiz)
	db.commit()


def quiz_to_response(quiz: Quiz) -> QuizResponse:
	questions = quiz.questions or []
	return QuizResponse(
		id=quiz.id,
		title=quiz.title,
		description=quiz.description,
		tags=quiz.tags or [],
		created_by=quiz.created_by,
		is_public=quiz.is_public,
		time_limit=quiz.time_limit,
		questions=questions,
		question_count=len(questions),
		created_at=quiz.created_at,
		updated_at=quiz.updated_at,
	)


# ---- flashcards ----

def create_flashcard(db: Session, req: CreateFlashcardRequest, caller_id: str) -> Flashcard:
	cards = [
		{
			"id": new_id(),
			"front": c.front,
			"back": c.back,
			"image_url": c.image_url,
			"position": c.position,
		}
		for c in req.cards
	]
	deck = Flashcard(
		title=req.title,
		description=req.description,
		tags=list(req.tags),
		created_by=caller_id,
		is_public=req.is_public,
		cards=cards,
	)
	db.add(deck)
	db.commit()
	db.refresh(deck)
	logger.info("flashcard deck %s created by %s with %d cards", deck.id, caller_id, len(cards))
	return deck


def get_flashcard(db: Session, flashcard_id: str) -> Flashcard:
	deck = db.get(Flashcard, flashcard_id)
	if deck is None:
		raise NotFound("Flashcard not found")
	return deck


def list_flashcards(db: Session) -> List[Flashcard]:
	return db.query(Flashcard).order_by(Flashcard.created_at.desc()).all()


def list_public_flashcards(db: Session) -> List[Flashcard]:
	return db.query(Flashcard).filter(Flashcard.is_public.is_(True)).order_by(Flashcard.created_at.desc()).all()


def list_my_flashcards(db: Session, caller_id: str) -> List[Flashcard]:
	return db.query(Flashcard).filter(Flashcard.created_by == caller_id).order_by(Flashcard.created_at.desc()).all()


def list_flashcards_by_tag(db: Session, tag: str) -> List[Flashcard]:
	candidates = (
		db.query(Flashcard)
		.filter(cast(Flashcard.tags, String).like(tag_pattern(tag), escape="!"))
		.order_by(Flashcard.created_at.desc())
		.all()
	)
	return [d for d in candidates if tag in (d.tags or [])]


def search_flashcards(db: Session, keyword: str) -> List[Flashcard]:
	pattern = f"%{keyword.lower()}%"
	return db.query(Flashcard).filter(func.lower(Flashcard.title).like(pattern)).order_by(Flashcard.created_at.desc()).all()


def recent_flashcards(db: Session, limit: int = 10) -> List[Flashcard]:
	return db.query(Flashcard).order_by(Flashcard.created_at.desc()).limit(limit).all()


def delete_flashcard(db: Session, flashcard_id: str, caller_id: str) -> None:
	deck = get_flashcard(db, flashcard_id)
	if deck.created_by != caller_id:
		logger.warning("user %s tried to delete flashcard %s owned by %s", caller_id, flashcard_id, deck.created_by)
		raise Forbidden("Unauthorized access to flashcard")
	db.execute(delete(FlashcardStudy).where(FlashcardStudy.flashcard_id == flashcard_id))
	db.delete(deck)
	db.commit()


def flashcard_to_response(deck: Flashcard) -> FlashcardResponse:
	# Cards are presented in position order, independent of storage order
	cards = sorted(deck.cards or [], key=lambda c: c.get("position", 0))
	return FlashcardResponse(
		id=deck.id,
		title=deck.title,
		description=deck.description,
		tags=deck.tags or [],
		created_by=deck.created_by,
		is_public=deck.is_public,
		cards=cards,
		card_count=len(cards),
		created_at=deck.created_at,
		updated_at=deck.updated_at,
	)
