from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_file: Path
    storage: str
    save_delay_ms: int
    default_language: str
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool
    log_level: str


def load_settings() -> Settings:
    data_file = Path(os.environ.get("NOTELAB_DATA_FILE", "./data/edunotelab-data.json")).resolve()
    storage = os.environ.get("NOTELAB_STORAGE", "file").lower()
    save_delay_ms = int(os.environ.get("NOTELAB_SAVE_DELAY_MS", "500"))
    default_language = os.environ.get("NOTELAB_DEFAULT_LANGUAGE", "html")
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    return Settings(
        data_file=data_file,
        storage=storage,
        save_delay_ms=save_delay_ms,
        default_language=default_language,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
        log_level=log_level,
    )
