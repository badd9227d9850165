"""Quiz attempt and flashcard study lifecycle.

An attempt is created in progress and moves to completed exactly once. The
completion is a conditional UPDATE on ``completed = false`` so that of two
racing submissions only one can win; the loser sees Conflict.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from .db import utcnow
from .errors import Conflict, Forbidden, NotFound
from .models import Flashcard, FlashcardStudy, Quiz, QuizAttempt
from .schemas import (
	FlashcardStudyResponse,
	Question,
	QuizAttemptResponse,
	SubmitFlashcardStudyRequest,
	SubmitQuizRequest,
)
from .scoring import Scorecard, score_quiz, summarize_study

logger = logging.getLogger(__name__)

UNKNOWN_QUIZ = "Unknown Quiz"
UNKNOWN_FLASHCARD = "Unknown Flashcard"


def _quiz_title(db: Session, quiz_id: str) -> str:
	quiz = db.get(Quiz, quiz_id)
	return quiz.title if quiz is not None else UNKNOWN_QUIZ


def _flashcard_title(db: Session, flashcard_id: str) -> str:
	deck = db.get(Flashcard, flashcard_id)
	return deck.title if deck is not None else UNKNOWN_FLASHCARD


def attempt_to_response(attempt: QuizAttempt, quiz_title: str) -> QuizAttemptResponse:
	return QuizAttemptResponse(
		id=attempt.id,
		quiz_id=attempt.quiz_id,
		quiz_title=quiz_title,
		score=attempt.score,
		total_questions=attempt.total_questions,
		correct_answers=attempt.correct_answers,
		wrong_answers=attempt.wrong_answers,
		unanswered=attempt.unanswered,
		time_spent=attempt.time_spent,
		completed=attempt.completed,
		started_at=attempt.started_at,
		completed_at=attempt.completed_at,
	)


def study_to_response(study: FlashcardStudy, flashcard_title: str) -> FlashcardStudyResponse:
	return FlashcardStudyResponse(
		id=study.id,
		flashcard_id=study.flashcard_id,
		flashcard_title=flashcard_title,
		total_cards=study.total_cards,
		cards_studied=study.cards_studied,
		cards_remembered=study.cards_remembered,
		cards_to_review=study.cards_to_review,
		time_spent=study.time_spent,
		completed=study.completed,
		started_at=study.started_at,
		completed_at=study.completed_at,
	)


# ---- quiz attempts ----

def start_quiz(db: Session, quiz_id: str, caller_id: str) -> QuizAttemptResponse:
	quiz = db.get(Quiz, quiz_id)
	if quiz is None:
		raise NotFound("Quiz not found")
	total = len(quiz.questions or [])
	attempt = QuizAttempt(
		user_id=caller_id,
		quiz_id=quiz_id,
		score=0,
		total_questions=total,
		correct_answers=0,
		wrong_answers=0,
		unanswered=total,
		time_spent=0,
		completed=False,
		started_at=utcnow(),
	)
	db.add(attempt)
	db.commit()
	db.refresh(attempt)
	logger.info("attempt %s started on quiz %s by %s", attempt.id, quiz_id, caller_id)
	return attempt_to_response(attempt, quiz.title)


def _owned_attempt(db: Session, attempt_id: str, caller_id: str) -> QuizAttempt:
	attempt = db.get(QuizAttempt, attempt_id)
	if attempt is None:
		raise NotFound("Quiz attempt not found")
	if attempt.user_id != caller_id:
		logger.warning("user %s denied access to attempt %s", caller_id, attempt_id)
		raise Forbidden("Unauthorized access to quiz attempt")
	return attempt


def submit_quiz(db: Session, attempt_id: str, caller_id: str, req: SubmitQuizRequest) -> QuizAttemptResponse:
	attempt = _owned_attempt(db, attempt_id, caller_id)
	if attempt.completed:
		logger.warning("attempt %s already completed", attempt_id)
		raise Conflict("Quiz attempt already completed")

	quiz: Optional[Quiz] = db.get(Quiz, attempt.quiz_id)
	if quiz is not None:
		questions = [Question.model_validate(q) for q in quiz.questions or []]
		card = score_quiz(questions, req.answers, attempt.total_questions)
		title = quiz.title
	else:
		# Parent deleted after start: nothing can be graded
		card = Scorecard(unanswered=attempt.total_questions)
		title = UNKNOWN_QUIZ

	now = utcnow()
	result = db.execute(
		update(QuizAttempt)
		.where(QuizAttempt.id == attempt_id, QuizAttempt.completed.is_(False))
		.values(
			score=card.score,
			correct_answers=card.correct_answers,
			wrong_answers=card.wrong_answers,
			unanswered=card.unanswered,
			time_spent=req.time_spent,
			completed=True,
			completed_at=now,
			updated_at=now,
		)
	)
	if result.rowcount != 1:
		db.rollback()
		logger.warning("attempt %s lost a concurrent submission", attempt_id)
		raise Conflict("Quiz attempt already completed")
	db.commit()
	db.refresh(attempt)
	logger.info(
		"attempt %s submitted: %d/%d correct, score %d",
		attempt_id, card.correct_answers, attempt.total_questions, card.score,
	)
	return attempt_to_response(attempt, title)


def get_attempt(db: Session, attempt_id: str, caller_id: str) -> QuizAttemptResponse:
	attempt = _owned_attempt(db, attempt_id, caller_id)
	return attempt_to_response(attempt, _quiz_title(db, attempt.quiz_id))


def list_my_attempts(db: Session, caller_id: str) -> List[QuizAttemptResponse]:
	attempts = (
		db.query(QuizAttempt)
		.filter(QuizAttempt.user_id == caller_id)
		.order_by(QuizAttempt.started_at.desc())
		.all()
	)
	return [attempt_to_response(a, _quiz_title(db, a.quiz_id)) for a in attempts]


# ---- flashcard studies ----

def start_study(db: Session, flashcard_id: str, caller_id: str) -> FlashcardStudyResponse:
	deck = db.get(Flashcard, flashcard_id)
	if deck is None:
		raise NotFound("Flashcard not found")
	total = len(deck.cards or [])
	study = FlashcardStudy(
		user_id=caller_id,
		flashcard_id=flashcard_id,
		total_cards=total,
		cards_studied=0,
		cards_remembered=0,
		cards_to_review=total,
		time_spent=0,
		completed=False,
		started_at=utcnow(),
	)
	db.add(study)
	db.commit()
	db.refresh(study)
	logger.info("study %s started on flashcard %s by %s", study.id, flashcard_id, caller_id)
	return study_to_response(study, deck.title)


def _owned_study(db: Session, study_id: str, caller_id: str) -> FlashcardStudy:
	study = db.get(FlashcardStudy, study_id)
	if study is None:
		raise NotFound("Flashcard study not found")
	if study.user_id != caller_id:
		logger.warning("user %s denied access to study %s", caller_id, study_id)
		raise Forbidden("Unauthorized access to flashcard study")
	return study


def submit_study(
	db: Session, study_id: str, caller_id: str, req: SubmitFlashcardStudyRequest
) -> FlashcardStudyResponse:
	study = _owned_study(db, study_id, caller_id)
	if study.completed:
		logger.warning("study %s already completed", study_id)
		raise Conflict("Flashcard study already completed")

	summary = summarize_study(req.card_results, study.total_cards)
	now = utcnow()
	result = db.execute(
		update(FlashcardStudy)
		.where(FlashcardStudy.id == study_id, FlashcardStudy.completed.is_(False))
		.values(
			cards_studied=summary.cards_studied,
			cards_remembered=summary.cards_remembered,
			cards_to_review=summary.cards_to_review,
			time_spent=req.time_spent,
			completed=True,
			completed_at=now,
			updated_at=now,
		)
	)
	if result.rowcount != 1:
		db.rollback()
		logger.warning("study %s lost a concurrent submission", study_id)
		raise Conflict("Flashcard study already completed")
	db.commit()
	db.refresh(study)
	logger.info(
		"study %s submitted: %d studied, %d remembered",
		study_id, summary.cards_studied, summary.cards_remembered,
	)
	return study_to_response(study, _flashcard_title(db, study.flashcard_id))


def get_study(db: Session, study_id: str, caller_id: str) -> FlashcardStudyResponse:
	study = _owned_study(db, study_id, caller_id)
	return study_to_response(study, _flashcard_title(db, study.flashcard_id))


def list_my_studies(db: Session, caller_id: str) -> List[FlashcardStudyResponse]:
	studies = (
		db.query(FlashcardStudy)
		.filter(FlashcardStudy.user_id == caller_id)
		.order_by(FlashcardStudy.started_at.desc())
		.all()
	)
	return [study_to_response(s, _flashcard_title(db, s.flashcard_id)) for s in studies]
