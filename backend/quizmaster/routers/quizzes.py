from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import attempts, content
from ..db import get_db
from ..schemas import CreateQuizRequest, QuizAttemptResponse, QuizResponse, SubmitQuizRequest
from .auth import User, get_current_user

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.post("", response_model=QuizResponse)
def create_quiz(req: CreateQuizRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return content.quiz_to_response(content.create_quiz(db, req, user.username))


@router.get("", response_model=List[QuizResponse])
def all_quizzes(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.quiz_to_response(q) for q in content.list_quizzes(db)]


@router.get("/public", response_model=List[QuizResponse])
def public_quizzes(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.quiz_to_response(q) for q in content.list_public_quizzes(db)]


@router.get("/my", response_model=List[QuizResponse])
def my_quizzes(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.quiz_to_response(q) for q in content.list_my_quizzes(db, user.username)]


@router.get("/tag/{tag}", response_model=List[QuizResponse])
def quizzes_by_tag(tag: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.quiz_to_response(q) for q in content.list_quizzes_by_tag(db, tag)]


@router.get("/search", response_model=List[QuizResponse])
def search_quizzes(keyword: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.quiz_to_response(q) for q in content.search_quizzes(db, keyword)]


@router.get("/recent", response_model=List[QuizResponse])
def recent_quizzes(
	limit: int = Query(default=10, ge=1, le=100),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	return [content.quiz_to_response(q) for q in content.recent_quizzes(db, limit)]


@router.get("/attempts/my", response_model=List[QuizAttemptResponse])
def my_attempts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return attempts.list_my_attempts(db, user.username)


@router.get("/attempts/{attempt_id}", response_model=QuizAttemptResponse)
def get_attempt(attempt_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return attempts.get_attempt(db, attempt_id, user.username)


@router.post("/attempts/{attempt_id}/submit", response_model=QuizAttemptResponse)
def submit_attempt(
	attempt_id: str,
	req: SubmitQuizRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	return attempts.submit_quiz(db, attempt_id, user.username, req)


@router.get("/{quiz_id}", response_model=QuizResponse)
def get_quiz(quiz_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return content.quiz_to_response(content.get_quiz(db, quiz_id))


@router.delete("/{quiz_id}")
def delete_quiz(quiz_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	content.delete_quiz(db, quiz_id, user.username)
	return {"message": "Quiz deleted successfully", "success": True}


@router.post("/{quiz_id}/start", response_model=QuizAttemptResponse)
def start_quiz(quiz_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return attempts.start_quiz(db, quiz_id, user.username)
