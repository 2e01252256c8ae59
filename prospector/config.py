"""Runtime configuration and logging setup."""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import streamlit as st
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

# Project ids shipped in sample configs; treated as "not configured"
PLACEHOLDER_PROJECT_IDS = {
    "mock-project",
    "your-project",
    "your-project-id",
    "your-project-ref",
}

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_secret(key: str, default: str = "") -> str:
    """Get a secret from st.secrets (Streamlit Cloud) or os.environ (.env file)."""
    # First try st.secrets (for Streamlit Cloud deployment)
    try:
        if hasattr(st, 'secrets') and key in st.secrets:
            return st.secrets[key]
    except Exception:
        pass

    # Fall back to environment variables (for local development)
    return os.getenv(key, default)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with a console handler."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # Silence noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class Settings(BaseModel):
    """Connection settings for the AI endpoint and the prospect backend."""

    gemini_api_key: str = Field("", description="Gemini API key")
    gemini_model: str = Field(DEFAULT_GEMINI_MODEL, description="Model used for every AI call")
    supabase_url: str = Field("", description="Supabase project URL")
    supabase_key: str = Field("", description="Supabase service or anon key")
    supabase_project_id: str = Field("", description="Explicit project ref; derived from the URL if empty")
    data_dir: Optional[Path] = Field(None, description="Directory for the local fallback store")
    log_level: str = Field("INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from st.secrets / environment variables."""
        data_dir = get_secret("PROSPECTOR_DATA_DIR")
        return cls(
            gemini_api_key=get_secret("GEMINI_API_KEY") or get_secret("API_KEY"),
            gemini_model=get_secret("GEMINI_MODEL", DEFAULT_GEMINI_MODEL) or DEFAULT_GEMINI_MODEL,
            supabase_url=get_secret("SUPABASE_URL"),
            supabase_key=get_secret("SUPABASE_KEY"),
            supabase_project_id=get_secret("SUPABASE_PROJECT_ID"),
            data_dir=Path(data_dir) if data_dir else None,
            log_level=get_secret("LOG_LEVEL", "INFO") or "INFO",
        )

    @property
    def project_id(self) -> str:
        """Project identifier: explicit value, else the first host label of the URL."""
        if self.supabase_project_id:
            return self.supabase_project_id.strip()
        if not self.supabase_url:
            return ""
        host = urlparse(self.supabase_url).hostname or ""
        return host.split(".")[0] if host else ""

    @property
    def backend_configured(self) -> bool:
        """True only when a real (non-placeholder) project and a key are present."""
        project_id = self.project_id
        if not project_id or project_id.lower() in PLACEHOLDER_PROJECT_IDS:
            return False
        return bool(self.supabase_url and self.supabase_key)
