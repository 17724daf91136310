"""
Application configuration loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database (empty means the volatile in-memory store)
    database_url: str = ""

    # Claude API
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-20241022"
    chat_max_tokens: int = 1000
    chat_temperature: float = 0.7

    # Bearer tokens issued by the identity provider
    jwt_secret: str = "your-super-secret-jwt-key-change-in-production"
    jwt_algorithm: str = "HS256"

    # CORS
    cors_origins: List[str] = ["*"]

    # Categories every user starts with
    seed_default_categories: bool = True
    default_categories: List[str] = ["Personal", "Work", "Ideas"]

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
