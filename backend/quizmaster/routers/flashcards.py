from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import attempts, content
from ..db import get_db
from ..schemas import CreateFlashcardRequest, FlashcardResponse, FlashcardStudyResponse, SubmitFlashcardStudyRequest
from .auth import User, get_current_user

router = APIRouter(prefix="/flashcards", tags=["flashcards"])


@router.post("", response_model=FlashcardResponse)
def create_flashcard(req: CreateFlashcardRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return content.flashcard_to_response(content.create_flashcard(db, req, user.username))


@router.get("", response_model=List[FlashcardResponse])
def all_flashcards(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.flashcard_to_response(d) for d in content.list_flashcards(db)]


@router.get("/public", response_model=List[FlashcardResponse])
def public_flashcards(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.flashcard_to_response(d) for d in content.list_public_flashcards(db)]


@router.get("/my", response_model=List[FlashcardResponse])
def my_flashcards(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.flashcard_to_response(d) for d in content.list_my_flashcards(db, user.username)]


@router.get("/tag/{tag}", response_model=List[FlashcardResponse])
def flashcards_by_tag(tag: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.flashcard_to_response(d) for d in content.list_flashcards_by_tag(db, tag)]


@router.get("/search", response_model=List[FlashcardResponse])
def search_flashcards(keyword: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return [content.flashcard_to_response(d) for d in content.search_flashcards(db, keyword)]


@router.get("/recent", response_model=List[FlashcardResponse])
def recent_flashcards(
	limit: int = Query(default=10, ge=1, le=100),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	return [content.flashcard_to_response(d) for d in content.recent_flashcards(db, limit)]


@router.get("/studies/my", response_model=List[FlashcardStudyResponse])
def my_studies(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return attempts.list_my_studies(db, user.username)


@router.get("/studies/{study_id}", response_model=FlashcardStudyResponse)
def get_study(study_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return attempts.get_study(db, study_id, user.username)


@router.post("/studies/{study_id}/submit", response_model=FlashcardStudyResponse)
def submit_study(
	study_id: str,
	req: SubmitFlashcardStudyRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	return attempts.submit_study(db, study_id, user.username, req)


@router.get("/{flashcard_id}", response_model=FlashcardResponse)
def get_flashcard(flashcard_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return content.flashcard_to_response(content.get_flashcard(db, flashcard_id))


@router.delete("/{flashcard_id}")
def delete_flashcard(flashcard_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	content.delete_flashcard(db, flashcard_id, user.username)
	return {"message": "Flashcard deleted successfully", "success": True}


@router.post("/{flashcard_id}/start", response_model=FlashcardStudyResponse)
def start_study(flashcard_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return attempts.start_study(db, flashcard_id, user.username)
