from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import chat, generation
from ..content import flashcard_to_response, quiz_to_response
from ..db import get_db
from ..llm_client import OpenRouterClient, get_llm_client
from ..schemas import (
	ChatMessageRequest,
	ChatMessageResponse,
	ChatSessionResponse,
	FlashcardResponse,
	GenerateFlashcardRequest,
	GenerateQuizRequest,
	QuizResponse,
)
from .auth import User, get_current_user

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/chat/sessions", response_model=ChatSessionResponse)
def create_chat_session(
	title: Optional[str] = None,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	return chat.session_to_response(chat.create_session(db, user.username, title))


@router.get("/chat/sessions", response_model=List[ChatSessionResponse])
def list_chat_sessions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [chat.session_to_response(s) for s in chat.list_sessions(db, user.username)]


@router.get("/chat/sessions/{session_id}", response_model=ChatSessionResponse)
def get_chat_session(session_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return chat.session_to_response(chat.get_session(db, session_id, user.username))


@router.delete("/chat/sessions/{session_id}")
def delete_chat_session(session_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	chat.delete_session(db, session_id, user.username)
	return {"message": "Chat session deleted successfully", "success": True}


@router.post("/chat/sessions/{session_id}/messages", response_model=ChatMessageResponse)
async def send_chat_message(
	session_id: str,
	req: ChatMessageRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	client: OpenRouterClient = Depends(get_llm_client),
):
	return await chat.send_message(db, client, session_id, user.username, req.content, req.model)


@router.post("/generate/quiz", response_model=QuizResponse)
async def generate_quiz(
	req: GenerateQuizRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	client: OpenRouterClient = Depends(get_llm_client),
):
	quiz = await generation.generate_quiz(db, client, req, user.username)
	return quiz_to_response(quiz)


@router.post("/generate/flashcard", response_model=FlashcardResponse)
async def generate_flashcard(
	req: GenerateFlashcardRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	client: OpenRouterClient = Depends(get_llm_client),
):
	deck = await generation.generate_flashcard(db, client, req, user.username)
	return flashcard_to_response(deck)
