from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_blank(value: str) -> str:
	if not value or not value.strip():
		raise ValueError("must not be blank")
	return value


class QuestionType(str, Enum):
	SINGLE_CHOICE = "SINGLE_CHOICE"
	MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
	TRUE_FALSE = "TRUE_FALSE"


# ---- creation payloads (shared by direct authoring and generation) ----

class OptionIn(BaseModel):
	text: str
	is_correct: bool = False

	check_text = field_validator("text")(_not_blank)


class QuestionIn(BaseModel):
	text: str
	image_url: Optional[str] = None
	type: QuestionType = QuestionType.SINGLE_CHOICE
	options: List[OptionIn] = Field(min_length=2)
	explanation: Optional[str] = None

	check_text = field_validator("text")(_not_blank)


class CreateQuizRequest(BaseModel):
	title: str = Field(min_length=3, max_length=100)
	description: Optional[str] = None
	tags: List[str] = Field(default_factory=list)
	is_public: bool = False
	time_limit: int = Field(default=0, ge=0, description="Minutes; 0 means no time limit")
	questions: List[QuestionIn] = Field(min_length=1)

	check_title = field_validator("title")(_not_blank)


class CardIn(BaseModel):
	front: str
	back: str
	image_url: Optional[str] = None
	position: int = 0

	check_front = field_validator("front")(_not_blank)
	check_back = field_validator("back")(_not_blank)


class CreateFlashcardRequest(BaseModel):
	title: str = Field(min_length=3, max_length=100)
	description: Optional[str] = None
	tags: List[str] = Field(default_factory=list)
	is_public: bool = False
	cards: List[CardIn] = Field(min_length=1)

	check_title = field_validator("title")(_not_blank)


# ---- stored shapes ----

class Option(BaseModel):
	id: str
	text: str
	is_correct: bool = False


class Question(BaseModel):
	id: str
	text: str
	image_url: Optional[str] = None
	type: QuestionType
	options: List[Option]
	explanation: Optional[str] = None


class Card(BaseModel):
	id: str
	front: str
	back: str
	image_url: Optional[str] = None
	position: int = 0


class QuizResponse(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	title: str
	description: Optional[str] = None
	tags: List[str]
	created_by: str
	is_public: bool
	time_limit: int
	questions: List[Question]
	question_count: int
	created_at: datetime
	updated_at: datetime


class FlashcardResponse(BaseModel):
	id: str
	title: str
	description: Optional[str] = None
	tags: List[str]
	created_by: str
	is_public: bool
	cards: List[Card]
	card_count: int
	created_at: datetime
	updated_at: datetime


# ---- attempts / studies ----

class SubmitQuizRequest(BaseModel):
	# question id -> selected option ids; omitted questions count as unanswered
	answers: Dict[str, List[str]] = Field(default_factory=dict)
	time_spent: int = Field(default=0, ge=0)


class SubmitFlashcardStudyRequest(BaseModel):
	# card id -> remembered
	card_results: Dict[str, bool] = Field(default_factory=dict)
	time_spent: int = Field(default=0, ge=0)


class QuizAttemptResponse(BaseModel):
	id: str
	quiz_id: str
	quiz_title: str
	score: int
	total_questions: int
	correct_answers: int
	wrong_answers: int
	unanswered: int
	time_spent: int
	completed: bool
	started_at: datetime
	completed_at: Optional[datetime] = None


class FlashcardStudyResponse(BaseModel):
	id: str
	flashcard_id: str
	flashcard_title: str
	total_cards: int
	cards_studied: int
	cards_remembered: int
	cards_to_review: int
	time_spent: int
	completed: bool
	started_at: datetime
	completed_at: Optional[datetime] = None


# ---- chat ----

class ChatMessageRequest(BaseModel):
	content: str = Field(min_length=1, max_length=2000)
	model: Optional[str] = None

	check_content = field_validator("content")(_not_blank)


class ChatMessageResponse(BaseModel):
	id: str
	content: str
	role: str
	model: Optional[str] = None
	timestamp: datetime


class ChatSessionResponse(BaseModel):
	id: str
	title: str
	messages: List[ChatMessageResponse]
	created_at: datetime
	updated_at: datetime


# ---- generation ----

class GenerateQuizRequest(BaseModel):
	topic: str = Field(max_length=200)
	difficulty: str = Field(description="easy, medium, hard")
	number_of_questions: int = Field(default=5, ge=1, le=50)
	tags: Optional[List[str]] = None
	model: Optional[str] = None

	check_topic = field_validator("topic")(_not_blank)
	check_difficulty = field_validator("difficulty")(_not_blank)


class GenerateFlashcardRequest(BaseModel):
	topic: str = Field(max_length=200)
	number_of_cards: int = Field(default=10, ge=1, le=100)
	tags: Optional[List[str]] = None
	model: Optional[str] = None

	check_topic = field_validator("topic")(_not_blank)
