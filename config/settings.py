"""Application configuration helpers."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_PERPLEXITY_BASE_URL = "https://api.perplexity.ai"


def _optional(name: str) -> Optional[str]:
    value = (os.environ.get(name) or "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    db_path: Path
    static_dir: Path
    secret_key: str
    openai_api_key: Optional[str]
    openai_model: str
    openai_base_url: Optional[str]
    perplexity_api_key: Optional[str]
    perplexity_model: str
    perplexity_base_url: str
    ai_timeout: float
    sandbox_timeout_ms: int
    node_binary: str
    python_binary: str
    log_level: str
    port: int

    @property
    def db_path_str(self) -> str:
        return str(self.db_path)

    @property
    def static_dir_str(self) -> str:
        return str(self.static_dir)

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def perplexity_configured(self) -> bool:
        return bool(self.perplexity_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(BASE_DIR / ".env")
    base_dir = BASE_DIR
    db_path = Path(os.environ.get("CODEIDE_DB") or (base_dir / "codeide.db"))
    static_dir = Path(os.environ.get("STATIC_ROOT") or (base_dir / "static"))
    secret_key = os.environ.get("APP_SECRET", "dev-secret")
    return Settings(
        base_dir=base_dir,
        db_path=db_path,
        static_dir=static_dir,
        secret_key=secret_key,
        openai_api_key=_optional("OPENAI_API_KEY"),
        openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o"),
        openai_base_url=_optional("OPENAI_BASE_URL"),
        perplexity_api_key=_optional("PERPLEXITY_API_KEY"),
        perplexity_model=os.environ.get("PERPLEXITY_MODEL", "sonar"),
        perplexity_base_url=(os.environ.get("PERPLEXITY_BASE_URL") or DEFAULT_PERPLEXITY_BASE_URL).rstrip("/"),
        ai_timeout=float(os.environ.get("AI_TIMEOUT", "60")),
        sandbox_timeout_ms=int(os.environ.get("SANDBOX_TIMEOUT_MS", "1000")),
        node_binary=os.environ.get("NODE_BINARY", "node"),
        python_binary=os.environ.get("PYTHON_BINARY") or sys.executable or "python3",
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        port=int(os.environ.get("PORT", "5000")),
    )


__all__ = ["Settings", "get_settings", "BASE_DIR"]
