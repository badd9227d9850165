"""Chat sessions with an LLM assistant: storage, context window and titles."""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from .db import utcnow
from .errors import Conflict, Forbidden, NotFound
from .llm_client import OpenRouterClient
from .models import ChatSession, new_id
from .schemas import ChatMessageResponse, ChatSessionResponse

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
CONTEXT_WINDOW = 10
TITLE_LENGTH = 30

CHAT_SYSTEM_PROMPT = (
	"You are a helpful AI assistant for the QuizMaster AI platform. You help users with creating "
	"quizzes, flashcards, and answering their questions about various topics."
)


def build_completion_messages(history: List[Dict[str, Any]]) -> List[Dict[str, str]]:
	"""System preamble plus the last CONTEXT_WINDOW messages, oldest first."""
	window = history[-CONTEXT_WINDOW:]
	return [{"role": "system", "content": CHAT_SYSTEM_PROMPT}] + [
		{"role": m["role"], "content": m["content"]} for m in window
	]


def derive_title(history: List[Dict[str, Any]]) -> str:
	first = next((m for m in history if m.get("role") == "user"), None)
	if first is None:
		return DEFAULT_TITLE
	content = first["content"]
	title = content[:TITLE_LENGTH]
	if len(content) > TITLE_LENGTH and not title.endswith((".", "?", "!")):
		title += "..."
	return title


def _message(content: str, role: str, model: Optional[str] = None) -> Dict[str, Any]:
	return {
		"id": new_id(),
		"content": content,
		"role": role,
		"model": model,
		"timestamp": utcnow().isoformat(),
	}


def message_to_response(message: Dict[str, Any]) -> ChatMessageResponse:
	return ChatMessageResponse(
		id=message["id"],
		content=message["content"],
		role=message["role"],
		model=message.get("model"),
		timestamp=datetime.fromisoformat(message["timestamp"]),
	)


def session_to_response(session: ChatSession) -> ChatSessionResponse:
	return ChatSessionResponse(
		id=session.id,
		title=session.title,
		messages=[message_to_response(m) for m in session.messages or []],
		created_at=session.created_at,
		updated_at=session.updated_at,
	)


def create_session(db: Session, caller_id: str, title: Optional[str] = None) -> ChatSession:
	now = utcnow()
	session = ChatSession(
		user_id=caller_id,
		title=title if title is not None and title.strip() else DEFAULT_TITLE,
		messages=[],
		created_at=now,
		updated_at=now,
	)
	db.add(session)
	db.commit()
	db.refresh(session)
	return session


def list_sessions(db: Session, caller_id: str) -> List[ChatSession]:
	return (
		db.query(ChatSession)
		.filter(ChatSession.user_id == caller_id)
		.order_by(ChatSession.updated_at.desc())
		.all()
	)


def get_session(db: Session, session_id: str, caller_id: str) -> ChatSession:
	session = db.get(ChatSession, session_id)
	if session is None:
		raise NotFound("Chat session not found")
	if session.user_id != caller_id:
		logger.warning("user %s denied access to chat session %s", caller_id, session_id)
		raise Forbidden("Unauthorized access to chat session")
	return session


def delete_session(db: Session, session_id: str, caller_id: str) -> None:
	session = get_session(db, session_id, caller_id)
	db.delete(session)
	db.commit()


async def send_message(
	db: Session,
	client: OpenRouterClient,
	session_id: str,
	caller_id: str,
	content: str,
	model: Optional[str] = None,
) -> ChatMessageResponse:
	session = get_session(db, session_id, caller_id)
	version = session.version
	history = list(session.messages or [])
	history.append(_message(content, "user"))

	use_model = client.resolve_model(model)
	# Upstream failure leaves the stored session untouched
	reply = await client.complete(build_completion_messages(history), use_model)

	assistant = _message(reply, "assistant", use_model)
	history.append(assistant)
	title = session.title
	if len(history) <= 2 and (not title or not title.strip() or title == DEFAULT_TITLE):
		title = derive_title(history)
		logger.info("chat session %s titled %r", session_id, title)

	result = db.execute(
		update(ChatSession)
		.where(ChatSession.id == session_id, ChatSession.version == version)
		.values(messages=history, title=title, updated_at=utcnow(), version=version + 1)
	)
	if result.rowcount != 1:
		db.rollback()
		logger.warning("chat session %s changed during a send", session_id)
		raise Conflict("Chat session was updated by another request")
	db.commit()
	return message_to_response(assistant)
