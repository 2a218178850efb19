from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
	# App
	APP_NAME: str = "Water Counter Agent"
	APP_VERSION: str = "1.0.0"
	API_V1_PREFIX: str = "/api/v1"
	DEBUG: bool = False
	ENVIRONMENT: str = "development" # development, staging, production

	# Server
	HOST: str = "127.0.0.1"
	PORT: int = 8080

	# Local store
	LOCAL_DATABASE_URL: str = "sqlite+aiosqlite:///./watercounter.db"
	DB_ECHO: bool = False
	AUTO_CREATE_TABLES: bool = True

	# Remote ingestion server
	REMOTE_API_URL: str = "http://localhost:3000/api"
	HEALTH_TIMEOUT_SECONDS: float = 5.0
	UPLOAD_TIMEOUT_SECONDS: float = 30.0
	MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

	# Sync
	SYNC_INTERVAL_SECONDS: float = 10.0
	SYNC_ON_STARTUP: bool = True
	DEFAULT_TELEGRAM_USER_ID: Optional[int] = None

	# CORS
	CORS_ORIGINS: List[str] = ["*"]

	# Monitoring
	EXPOSE_METRICS: bool = True

	# Logging
	LOG_LEVEL: str = "INFO"
	LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

	model_config = SettingsConfigDict(
		env_file=".env",
		env_file_encoding="utf-8",
		case_sensitive=True
	)


@lru_cache()
def get_settings() -> Settings:
	return Settings()


settings = get_settings()
