"""Runtime settings read from the environment (and .env at the repo root)."""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT = Path(__file__).parent.parent

DEFAULT_API_URL = "https://api.deepseek.com/v1/chat/completions"


class Settings(BaseModel):
    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = "deepseek-chat"
    temperature: float = 0.7
    llm_timeout: float = 30.0
    completion_backend: Literal["http", "echo"] = "http"
    cache_ttl: float = 300.0
    session_timeout: float = 24 * 60 * 60
    prayer_limit: int = 3
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000


def load_settings() -> Settings:
    """Build Settings from env vars; unset vars keep their defaults."""
    load_dotenv(ROOT / ".env")
    env = {
        "api_key": os.getenv("DEEPSEEK_API_KEY"),
        "api_url": os.getenv("DEEPSEEK_API_URL"),
        "model": os.getenv("DEEPSEEK_MODEL"),
        "temperature": os.getenv("LLM_TEMPERATURE"),
        "llm_timeout": os.getenv("LLM_TIMEOUT"),
        "completion_backend": os.getenv("COMPLETION_BACKEND"),
        "cache_ttl": os.getenv("CACHE_TTL"),
        "session_timeout": os.getenv("SESSION_TIMEOUT"),
        "prayer_limit": os.getenv("PRAYER_LIMIT"),
        "environment": os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV"),
        "host": os.getenv("HOST"),
        "port": os.getenv("PORT"),
    }
    return Settings(**{k: v for k, v in env.items() if v})
