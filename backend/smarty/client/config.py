"""
Client configuration loaded from SMARTY_* environment variables.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    api_base_url: str = "http://localhost:3000/api"
    timeout: float = 30.0  # seconds; also covers slow AI replies
    cache_path: Optional[str] = None

    class Config:
        env_prefix = "SMARTY_"
        env_file = ".env"
        extra = "ignore"


client_settings = ClientSettings()
