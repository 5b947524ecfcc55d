import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration read from the environment (and .env)."""
    model_config = {"frozen": True}

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    log_level: str = "INFO"
    max_upload_mb: int = 10

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "10")),
    )
