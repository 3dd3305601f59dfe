from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application
    APP_NAME: str = "CNC Insight Navigator"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8080"

    # Chat backend: "auto", "embedded", "remote" or "fallback"
    LLM_BACKEND: str = "auto"

    # Remote chat-completion endpoint (Ollama compatible)
    OLLAMA_API_URL: Optional[str] = "http://localhost:11434/api/chat"
    OLLAMA_MODEL: str = "gemma3:1b"
    REMOTE_TIMEOUT_SECONDS: Optional[float] = None

    # Embedded model binding
    EMBEDDED_MODEL_PATH: str = "/assets/gemma3-1b-it-int4.task"
    EMBEDDED_MAX_TOKENS: int = 1000
    EMBEDDED_TOP_K: int = 40
    EMBEDDED_TEMPERATURE: float = 0.8
    EMBEDDED_RANDOM_SEED: int = 101

    # Fallback streaming
    FALLBACK_CHUNK_DELAY: float = 0.03
    FALLBACK_SLICE_SIZE: int = 12

    # Monitoring
    HISTORY_MAX_LENGTH: int = 20
    SAMPLE_INTERVAL_SECONDS: float = 30.0
    DASHBOARD_ANOMALY_CHANCE: float = 0.2
    AUTO_SAMPLE: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
