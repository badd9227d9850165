from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# OpenRouter chat-completions upstream
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	# Used whenever a request names no model (or a blank one)
	openrouter_model: str = Field(default="openai/gpt-4o-mini", validation_alias="OPENROUTER_MODEL")
	openrouter_referer: str = Field(default="https://quizmaster.ai", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="QuizMaster AI", validation_alias="OPENROUTER_TITLE")

	llm_timeout_seconds: float = Field(default=30.0, validation_alias="LLM_TIMEOUT_SECONDS")
	llm_temperature: float = Field(default=0.7, validation_alias="LLM_TEMPERATURE")
	llm_max_tokens: int = Field(default=2000, validation_alias="LLM_MAX_TOKENS")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
