"""
Configuration for llm-conversations.

Values come from the environment (a ``.env`` file in the working directory
is loaded first). CLI options override individual fields.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from llm_conversations.storage.blob import DEFAULT_QUOTA_BYTES

load_dotenv()

DEFAULT_DATA_DIR = Path("~/.local/share/llm-conversations")


@dataclass
class AppConfig:
    data_dir: Path
    backend: str = "auto"
    blob_quota_bytes: int = DEFAULT_QUOTA_BYTES
    log_level: str = "WARNING"
    fetch_timeout: float = 30.0


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    data_dir = os.getenv("LLM_CONVERSATIONS_DATA_DIR") or str(DEFAULT_DATA_DIR)
    return AppConfig(
        data_dir=Path(data_dir).expanduser(),
        backend=os.getenv("LLM_CONVERSATIONS_BACKEND", "auto").strip().lower(),
        blob_quota_bytes=int(os.getenv("LLM_CONVERSATIONS_BLOB_QUOTA", str(DEFAULT_QUOTA_BYTES))),
        log_level=os.getenv("LLM_CONVERSATIONS_LOG_LEVEL", "WARNING").upper(),
        fetch_timeout=float(os.getenv("LLM_CONVERSATIONS_FETCH_TIMEOUT", "30")),
    )
