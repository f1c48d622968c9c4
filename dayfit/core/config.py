from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    POSTGRES_DSN: str | None = None
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # Identity provider (Supabase-style /auth/v1/user endpoint)
    AUTH_API_BASE: str | None = None
    AUTH_API_KEY: str | None = None
    AUTH_TIMEOUT_SECONDS: float = 10.0

    # Language-model providers; Gemini is tried first when both are set
    GEMINI_API_KEY: str | None = None
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com"
    GEMINI_MODELS: list[str] = ["gemini-2.5-flash", "gemini-1.5-flash", "gemini-1.5-pro"]
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    AI_TIMEOUT_SECONDS: float = 60.0

    # Pause between writes of a template assignment batch
    ASSIGNMENT_DELAY_SECONDS: float = 0.05

    # How far back the day aggregator loads records
    AGGREGATION_WINDOW_DAYS: int = 365


settings = Settings()
