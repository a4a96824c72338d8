import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _get_bool(name: str, fallback: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None or raw_value.strip() == "":
        return fallback
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    supabase_url: str = _require_env("SUPABASE_URL")
    supabase_anon_key: str = _require_env("SUPABASE_ANON_KEY")
    orders_table: str = os.getenv("ORDERS_TABLE", "orders")
    api_version: str = os.getenv("API_VERSION", "v1")
    environment: str = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV", "development")
    debug: bool = _get_bool("DEBUG")
    estimated_delivery_minutes: int = int(os.getenv("ESTIMATED_DELIVERY_MINUTES", "30"))
    verify_token_owner: bool = _get_bool("VERIFY_TOKEN_OWNER")
    port: int = int(os.getenv("PORT", "3000"))
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )


settings = Settings()
