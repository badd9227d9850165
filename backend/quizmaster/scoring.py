"""Deterministic grading of quiz attempts and flashcard studies.

Nothing here touches storage; callers pass the authoritative quiz questions
(or the deck size) and get back a plain scorecard.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Mapping, Sequence

from pydantic import BaseModel

from .schemas import Question, QuestionType


class Scorecard(BaseModel):
	correct_answers: int = 0
	wrong_answers: int = 0
	unanswered: int = 0
	score: int = 0


class StudySummary(BaseModel):
	cards_studied: int
	cards_remembered: int
	cards_to_review: int


def _grade_single(question: Question, selected: List[str]) -> bool:
	if len(selected) > 1:
		return False
	chosen = selected[0]
	for option in question.options:
		if option.id == chosen:
			return option.is_correct
	# Unknown option id
	return False


def _grade_multiple(question: Question, selected: List[str]) -> bool:
	# Exact set match, no partial credit
	correct = {o.id for o in question.options if o.is_correct}
	return correct == set(selected)


_GRADERS: Dict[QuestionType, Callable[[Question, List[str]], bool]] = {
	QuestionType.SINGLE_CHOICE: _grade_single,
	QuestionType.TRUE_FALSE: _grade_single,
	QuestionType.MULTIPLE_CHOICE: _grade_multiple,
}


def percentage(correct: int, total: int) -> int:
	"""Truncating integer percentage; 2 of 3 is 66."""
	if total <= 0:
		return 0
	return (correct * 100) // total


def score_quiz(
	questions: Sequence[Question],
	answers: Mapping[str, Sequence[str]],
	total_questions: int,
) -> Scorecard:
	"""Grade ``answers`` against ``questions``.

	``total_questions`` is the count snapshotted when the attempt started and
	is the denominator of the score.
	"""
	card = Scorecard()
	for question in questions:
		selected = list(answers.get(question.id) or [])
		if not selected:
			card.unanswered += 1
			continue
		if _GRADERS[question.type](question, selected):
			card.correct_answers += 1
		else:
			card.wrong_answers += 1
	card.score = percentage(card.correct_answers, total_questions)
	return card


def summarize_study(card_results: Mapping[str, bool], total_cards: int) -> StudySummary:
	remembered = sum(1 for remembered in card_results.values() if remembered)
	return StudySummary(
		cards_studied=len(card_results),
		cards_remembered=remembered,
		# Against the whole deck, not just the cards studied
		cards_to_review=total_cards - remembered,
	)
