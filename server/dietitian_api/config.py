"""Application configuration loaded from environment variables."""
import os
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    data_path: str = os.getenv("DATA_PATH", os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
    database_file: str = "ayurveda.db"

    @property
    def database_path(self) -> str:
        if os.path.isabs(self.database_file):
            return self.database_file
        return os.path.join(self.data_path, self.database_file)

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8082

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # AI gateway
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    ai_gateway_api_key: str = ""
    ai_model: str = "google/gemini-2.5-flash"
    ai_timeout_seconds: float = 120.0
    ai_max_prompt_foods: int = 30

    class Config:
        env_prefix = "DIETITIAN_"


@lru_cache
def get_settings() -> Settings:
    return Settings()
