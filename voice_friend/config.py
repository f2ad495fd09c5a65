"""
Application configuration — reads all settings from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "Voice AI Friend"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: str = "*"

    # ── Dataset ──────────────────────────────────────────
    DATASET_PATH: str = "./data/friend_dataset.txt"
    DATASET_ENCODING: str = "utf-8"
    DATASET_SOURCE: str = "cache"

    # ── OpenAI (optional) ────────────────────────────────
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_MAX_TOKENS: int = 50
    OPENAI_TEMPERATURE: float = 0.7
    BACKEND_TIMEOUT_SECONDS: float = 5.0

    # ── Voice ────────────────────────────────────────────
    DEFAULT_VOICE: str = "female"

    # ── Transport ────────────────────────────────────────
    WS_MAX_PAYLOAD: int = 1024 * 1024
    RATE_LIMIT_PER_MINUTE: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
