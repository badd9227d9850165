from __future__ import annotations
import uuid
from sqlalchemy import Boolean, Column, String, DateTime, Integer, Text, JSON
from .db import Base, utcnow


def new_id() -> str:
	return uuid.uuid4().hex


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username; it is also the owner id stamped on content
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=utcnow, nullable=False)


class Quiz(Base):
	__tablename__ = "quizzes"
	id = Column(String(32), primary_key=True, default=new_id)
	title = Column(String(100), nullable=False, index=True)
	description = Column(Text, nullable=True)
	tags = Column(JSON, default=list, nullable=False)
	created_by = Column(String(128), nullable=False, index=True)
	is_public = Column(Boolean, default=False, nullable=False)
	# Minutes; 0 means unlimited
	time_limit = Column(Integer, default=0, nullable=False)
	# [{id, text, image_url, type, options: [{id, text, is_correct}], explanation}]
	questions = Column(JSON, default=list, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class QuizAttempt(Base):
	__tablename__ = "quiz_attempts"
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(128), nullable=False, index=True)
	quiz_id = Column(String(32), nullable=False, index=True)
	score = Column(Integer, default=0, nullable=False)
	total_questions = Column(Integer, default=0, nullable=False)
	correct_answers = Column(Integer, default=0, nullable=False)
	wrong_answers = Column(Integer, default=0, nullable=False)
	unanswered = Column(Integer, default=0, nullable=False)
	time_spent = Column(Integer, default=0, nullable=False)  # seconds
	completed = Column(Boolean, default=False, nullable=False)
	started_at = Column(DateTime, default=utcnow, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Flashcard(Base):
	__tablename__ = "flashcards"
	id = Column(String(32), primary_key=True, default=new_id)
	title = Column(String(100), nullable=False, index=True)
	description = Column(Text, nullable=True)
	tags = Column(JSON, default=list, nullable=False)
	created_by = Column(String(128), nullable=False, index=True)
	is_public = Column(Boolean, default=False, nullable=False)
	# [{id, front, back, image_url, position}]
	cards = Column(JSON, default=list, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class FlashcardStudy(Base):
	__tablename__ = "flashcard_studies"
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(128), nullable=False, index=True)
	flashcard_id = Column(String(32), nullable=False, index=True)
	total_cards = Column(Integer, default=0, nullable=False)
	cards_studied = Column(Integer, default=0, nullable=False)
	cards_remembered = Column(Integer, default=0, nullable=False)
	cards_to_review = Column(Integer, default=0, nullable=False)
	time_spent = Column(Integer, default=0, nullable=False)  # seconds
	completed = Column(Boolean, default=False, nullable=False)
	started_at = Column(DateTime, default=utcnow, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class ChatSession(Base):
	__tablename__ = "chat_sessions"
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(128), nullable=False, index=True)
	title = Column(String(256), nullable=False, default="New Chat")
	# [{id, content, role, model, timestamp}] in chronological order
	messages = Column(JSON, default=list, nullable=False)
	# Bumped on every exchange; guards concurrent sends
	version = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, nullable=False)
