"""
Disaster API Configuration
==========================
All runtime settings in one place, read from the environment (and a local
``.env`` file when present).  Build an instance with ``Settings.from_env()``
or construct one directly in tests.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigError

STORE_BACKENDS = ("memory", "firestore")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number", details=raw)


@dataclass(frozen=True)
class Settings:
    """Complete configuration for the API process."""

    # ── Store ────────────────────────────────────────────────────────
    store_backend: str = "memory"           # memory | firestore
    firebase_credentials: str = ""          # service-account JSON; empty = ADC
    firebase_project_id: str = ""
    firestore_collection: str = "disasters"

    # ── Gemini ───────────────────────────────────────────────────────
    gemini_api_key: str = ""
    gemini_text_model: str = "gemini-1.5-flash"
    gemini_vision_model: str = "gemini-1.5-flash"

    # ── Geocoding / outbound HTTP ────────────────────────────────────
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    geocoder_user_agent: str = "disaster-api/1.0"
    http_timeout: float = 15.0
    verify_fetch_images: bool = True

    # ── Server ───────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 5001
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    def __post_init__(self):
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigError(
                f"DISASTER_STORE must be one of {', '.join(STORE_BACKENDS)}",
                details=self.store_backend,
            )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Load ``.env`` (without overriding real env vars) and read settings."""
        load_dotenv(dotenv_path)
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            store_backend=os.getenv("DISASTER_STORE", "memory").strip().lower(),
            firebase_credentials=os.getenv("FIREBASE_CREDENTIALS", ""),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID", ""),
            firestore_collection=os.getenv("FIRESTORE_COLLECTION", "disasters"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_text_model=os.getenv("GEMINI_TEXT_MODEL", "gemini-1.5-flash"),
            gemini_vision_model=os.getenv("GEMINI_VISION_MODEL", "gemini-1.5-flash"),
            nominatim_url=os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search"),
            geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", "disaster-api/1.0"),
            http_timeout=_env_number("HTTP_TIMEOUT", 15.0, float),
            verify_fetch_images=_env_bool("VERIFY_FETCH_IMAGES", True),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_number("PORT", 5001, int),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def setup_logging(level: str = "INFO"):
    """Configure the root logger once for the whole process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
