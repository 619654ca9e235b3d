from __future__ import annotations

import os
from dataclasses import dataclass


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_optional_bool(name: str) -> bool | None:
    if os.getenv(name) is None:
        return None
    return _parse_bool(name, False)


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str
    storage_url: str
    admin_passphrase: str
    ai_provider: str
    gemini_api_key: str
    gemini_model: str
    gemini_base_url: str
    openrouter_api_key: str
    openrouter_model: str
    openrouter_base_url: str
    ai_timeout_seconds: float
    log_level: str
    json_logs: bool | None           # None: auto-detect in setup_logging

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_name=os.getenv("APP_NAME", "incidesk"),
            storage_url=os.getenv("INCIDESK_STORAGE_URL", "sqlite:///./data/incidesk.db"),
            admin_passphrase=os.getenv("INCIDESK_ADMIN_PASSPHRASE", "admin"),
            ai_provider=os.getenv("AI_PROVIDER", "auto").strip().lower(),
            # API_KEY is accepted as a legacy alias.
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            gemini_base_url=os.getenv(
                "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
            ),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
            openrouter_model=os.getenv("OPENROUTER_MODEL", "google/gemini-2.5-flash"),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
            ai_timeout_seconds=_parse_float("AI_TIMEOUT_SECONDS", 40.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            json_logs=_parse_optional_bool("LOG_FORMAT_JSON"),
        )
