"""Configuration read from the environment (and an optional ``.env`` file)."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

SQLITE_FILE_NAME = os.environ.get("CHORELOOP_SQLITE", "choreloop.db")
STATE_KEY = os.environ.get("CHORELOOP_STATE_KEY", "choreloop_state")
_log_file = os.environ.get("CHORELOOP_LOG_FILE", "").strip()
LOG_FILE: Optional[Path] = Path(_log_file) if _log_file else None


def database_url(file_name: str | None = None) -> str:
    return f"sqlite:///{file_name or SQLITE_FILE_NAME}"


__all__ = ["LOG_FILE", "SQLITE_FILE_NAME", "STATE_KEY", "database_url"]
