from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db, utcnow
from ..models import AuthUser, AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class User(BaseModel):
	username: str


class RegisterRequest(BaseModel):
	username: str = Field(min_length=3, max_length=128)
	password: str = Field(min_length=6, max_length=72)
	email: Optional[str] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
	user_row = db.get(AuthUser, username)
	if user_row and verify_password(password, user_row.password_hash):
		return User(username=username)
	return None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
	to_encode.update({"exp": datetime.now(timezone.utc) + delta})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_token(db: Session, username: str) -> Token:
	# Each token carries a server-side session id (jti) so it can be revoked
	session_id = uuid.uuid4().hex
	db.add(AuthSession(session_id=session_id, username=username))
	db.commit()
	return Token(access_token=create_access_token({"sub": username, "jti": session_id}))


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	username = req.username.strip()
	if len(username) < 3:
		raise HTTPException(status_code=400, detail="username must be 3-128 characters")
	if db.get(AuthUser, username) is not None:
		raise HTTPException(status_code=409, detail="username already exists")
	db.add(AuthUser(username=username, password_hash=pwd_context.hash(req.password), email=req.email))
	db.commit()
	return {"ok": True}


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail="Incorrect username or password")
	return issue_token(db, user.username)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		username: str | None = payload.get("sub")
		jti: str | None = payload.get("jti")
		if username is None or jti is None:
			raise credentials_exception
	except JWTError:
		raise credentials_exception
	row = db.get(AuthSession, jti)
	if not row or row.username != username:
		raise credentials_exception
	row.last_activity_at = utcnow()
	db.commit()
	return User(username=username)


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user
