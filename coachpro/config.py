"""Runtime settings for the CoachPro club manager, read from the environment."""
import os
from dataclasses import dataclass
from typing import Optional

from .utils.constants import CLUB_LOGO_URL, CLUB_NAME

STORAGE_SUPABASE = "supabase"
STORAGE_JSON = "json"


@dataclass(frozen=True)
class Settings:
    storage_backend: str = STORAGE_JSON
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    data_dir: str = "data"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"
    secret_key: str = "coachpro-dev-secret"
    club_name: str = CLUB_NAME
    club_logo_url: str = CLUB_LOGO_URL
    host: str = "127.0.0.1"
    port: int = 7122


def _resolve_storage_backend(value: Optional[str], url: Optional[str], key: Optional[str]) -> str:
    if value:
        normalized = value.strip().lower()
        if normalized not in (STORAGE_SUPABASE, STORAGE_JSON):
            raise ValueError(f"Unknown storage backend: {value}")
        return normalized
    return STORAGE_SUPABASE if url and key else STORAGE_JSON


def load_settings() -> Settings:
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")
    return Settings(
        storage_backend=_resolve_storage_backend(
            os.getenv("COACHPRO_STORAGE"), supabase_url, supabase_key
        ),
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        data_dir=os.getenv("COACHPRO_DATA_DIR", "data"),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-3-flash-preview"),
        secret_key=os.getenv("COACHPRO_SECRET_KEY", "coachpro-dev-secret"),
        club_name=os.getenv("COACHPRO_CLUB_NAME", CLUB_NAME),
        club_logo_url=os.getenv("COACHPRO_CLUB_LOGO_URL", CLUB_LOGO_URL),
        host=os.getenv("COACHPRO_HOST", "127.0.0.1"),
        port=int(os.getenv("COACHPRO_PORT", "7122")),
    )
