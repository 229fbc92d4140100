import json
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# The LLM client reads provider keys straight from os.environ.
_package_root = Path(__file__).resolve().parent
_project_root = _package_root.parent
load_dotenv(_project_root / ".env", override=False)
load_dotenv(_project_root / ".env.local", override=False)

DEFAULT_FRAMEWORK_PATH = _package_root / "templates" / "masterclass_framework.md"


def _coerce_json(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    BACKEND_CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000"]

    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None
    LLM_DEFAULT_MODEL: str = "claude-sonnet-4-5"
    LLM_REQUEST_TIMEOUT: int = 120
    LLM_REQUEST_RETRIES: int = 2

    # Deck generation runs the framework through the model in fixed slide ranges.
    DECK_FRAMEWORK_PATH: str = str(DEFAULT_FRAMEWORK_PATH)
    DECK_SLIDES_PER_CHUNK: int = 10
    DECK_CHUNK_DELAY_SECONDS: float = 2.0
    DECK_CHUNK_MAX_TOKENS: int = 4000

    TRASH_RETENTION_DAYS: int = 30

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            parsed = _coerce_json(value)
            if isinstance(parsed, list):
                return parsed
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("DECK_SLIDES_PER_CHUNK")
    @classmethod
    def positive_chunk_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("DECK_SLIDES_PER_CHUNK must be at least 1")
        return value


settings = Settings()
