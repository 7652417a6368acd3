"""
Application configuration.

Settings are read from the environment once per process. A `.env` file in the
project directory is loaded first so local development needs no exports.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: Supabase project credentials (server-side key)
- INVENTORY_API_URL: base URL of the inventory service
- DISPATCH_API_URL: base URL of the dispatch service
- HTTP_TIMEOUT_SECONDS: timeout applied to every external HTTP call
- PENDING_EXPIRATION_MINUTES: reservation window for PENDING sales
- DISPATCH_BUFFER_DAYS: shipping days added after manufacturing
- PROFIT_MARGIN: margin applied to catalog prices in product search
- LOG_LEVEL: root logging level
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    inventory_api_url: str = "http://localhost:3001"
    dispatch_api_url: str = "http://localhost:3002"
    http_timeout_seconds: float = 5.0
    pending_expiration_minutes: int = 15
    dispatch_buffer_days: int = 3
    profit_margin: Decimal = Decimal("0.16")
    log_level: str = "INFO"


def _env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value not in (None, "") else default


def load_settings() -> Settings:
    """Build Settings from the current environment (after loading .env)."""

    load_dotenv(dotenv_path=env_path)

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_KEY") or None,
        inventory_api_url=_env("INVENTORY_API_URL", "http://localhost:3001").rstrip("/"),
        dispatch_api_url=_env("DISPATCH_API_URL", "http://localhost:3002").rstrip("/"),
        http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS", "5")),
        pending_expiration_minutes=int(_env("PENDING_EXPIRATION_MINUTES", "15")),
        dispatch_buffer_days=int(_env("DISPATCH_BUFFER_DAYS", "3")),
        profit_margin=Decimal(_env("PROFIT_MARGIN", "0.16")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API process and scripts."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = ["Settings", "load_settings", "get_settings", "configure_logging"]
