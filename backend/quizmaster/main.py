import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .db import Base, engine, utcnow
from .errors import QuizmasterError, ValidationError
from .settings import settings
from .routers import health, auth, quizzes, flashcards, ai

logger = logging.getLogger(__name__)


def setup_logging() -> None:
	logging.basicConfig(
		level=getattr(logging, settings.log_level.upper(), logging.INFO),
		format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	)
	# Silence the bcrypt version probe
	logging.getLogger("passlib").setLevel(logging.ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI):
	Base.metadata.create_all(bind=engine)
	yield


def _error_body(kind: str, message: str, **extra) -> dict:
	return {"kind": kind, "message": message, "timestamp": utcnow().isoformat(), **extra}


async def handle_quizmaster_error(request: Request, exc: QuizmasterError) -> JSONResponse:
	if exc.status_code >= 500:
		logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
	return JSONResponse(status_code=exc.status_code, content=_error_body(exc.kind, exc.message))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
	details = {
		".".join(str(p) for p in err["loc"] if p != "body"): err["msg"]
		for err in exc.errors()
	}
	return JSONResponse(
		status_code=ValidationError.status_code,
		content=_error_body(ValidationError.kind, "Invalid request parameters", details=details),
	)


def create_app() -> FastAPI:
	setup_logging()
	app = FastAPI(title="QuizMaster AI API", lifespan=lifespan)
	app.add_exception_handler(QuizmasterError, handle_quizmaster_error)
	app.add_exception_handler(RequestValidationError, handle_request_validation)
	app.include_router(health.router)
	app.include_router(auth.router)
	app.include_router(quizzes.router)
	app.include_router(flashcards.router)
	app.include_router(ai.router)

	@app.get("/info")
	def info():
		return {"status": "ok", "llm_configured": bool(settings.openrouter_api_key)}

	return app


app = create_app()
